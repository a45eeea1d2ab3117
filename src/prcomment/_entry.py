"""Smart entry point: dispatch on the program name when installed as
/opt/resource/{check,in,out}, otherwise run the CLI as is."""

import sys
from pathlib import Path

COMMANDS = ("check", "in", "out")


def main():
    name = Path(sys.argv[0]).name
    if name in COMMANDS:
        sys.argv.insert(1, name)

    from prcomment.cli.main import app

    app()


if __name__ == "__main__":
    main()
