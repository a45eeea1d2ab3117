"""Pydantic v2 models for resource requests, versions and GitHub objects."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Iterator, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, RootModel, field_validator, model_validator

from prcomment.utils.paths import DEFAULT_COMMENT_FILE, DEFAULT_SOURCE_PATH


class _Strict(BaseModel):
    """Request payloads reject unknown fields."""

    model_config = ConfigDict(extra="forbid")


# -- Source --


class Source(_Strict):
    model_config = ConfigDict(extra="forbid", frozen=True)

    repository: str

    # Access
    access_token: str = ""
    username: str = ""
    password: str = ""
    github_endpoint: str = ""
    skip_ssl: bool = False
    disable_git_lfs: bool = False
    git_crypt_key: str = ""

    # Selection criteria
    only_mergeable: bool = False
    states: list[str] = Field(default_factory=list)
    ignore_states: list[str] = Field(default_factory=list)
    labels: list[str] = Field(default_factory=list)
    ignore_labels: list[str] = Field(default_factory=list)
    comments: list[str] = Field(default_factory=list)
    ignore_comments: list[str] = Field(default_factory=list)
    commenter_association: list[str] = Field(default_factory=list)
    review_states: list[str] = Field(default_factory=list)
    when: Literal["all", "latest", "first"] = "latest"
    map_comment_meta: bool = False
    ignore_drafts: bool = True

    @field_validator(
        "states",
        "ignore_states",
        "labels",
        "ignore_labels",
        "comments",
        "ignore_comments",
        "commenter_association",
        "review_states",
        mode="before",
    )
    @classmethod
    def _null_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("when", mode="before")
    @classmethod
    def _default_when(cls, value: Any) -> Any:
        return value or "latest"


# -- Version and metadata --


class Version(_Strict):
    """One matched comment or review, as seen by the CI scheduler.

    ``created_at`` only orders versions; it is not part of their identity.
    """

    created_at: str = ""
    pr_id: str
    comment_id: Optional[str] = None
    review_id: Optional[str] = None

    @field_validator("comment_id", "review_id", mode="before")
    @classmethod
    def _blank_is_unset(cls, value: Any) -> Any:
        return value or None

    @model_validator(mode="after")
    def _one_reference(self) -> Version:
        if self.comment_id and self.review_id:
            raise ValueError("a version references either a comment or a review, not both")
        return self

    @property
    def sort_key(self) -> int:
        try:
            return int(self.created_at)
        except ValueError:
            return 0

    def dump(self) -> dict[str, str]:
        return self.model_dump(exclude_none=True)


class MetadataField(_Strict):
    name: str
    value: str


class Metadata(RootModel[list[MetadataField]]):
    """Ordered name/value pairs. Names are not deduplicated."""

    root: list[MetadataField] = Field(default_factory=list)

    def __iter__(self) -> Iterator[MetadataField]:  # type: ignore[override]
        return iter(self.root)

    def __len__(self) -> int:
        return len(self.root)

    def add(self, name: str, value: str) -> None:
        self.root.append(MetadataField(name=name, value=value))

    def extend(self, other: Metadata) -> None:
        self.root.extend(other.root)

    def get(self, name: str) -> str:
        """Return the first value recorded under ``name``."""
        for item in self.root:
            if item.name == name:
                return item.value
        raise KeyError(name)

    def names(self) -> list[str]:
        return [item.name for item in self.root]


# -- GitHub objects (read-only views of API payloads) --


class User(BaseModel):
    login: str = ""
    id: int = 0
    avatar_url: str = ""
    html_url: str = ""


class Label(BaseModel):
    name: str


class Repository(BaseModel):
    full_name: str = ""
    clone_url: str = ""


class GitRef(BaseModel):
    ref: str
    sha: str
    repo: Optional[Repository] = None


class PullRequest(BaseModel):
    number: int
    state: str
    labels: list[Label] = Field(default_factory=list)
    mergeable: Optional[bool] = None
    draft: bool = False
    head: GitRef
    base: GitRef
    html_url: str = ""

    @property
    def label_names(self) -> list[str]:
        return [label.name for label in self.labels]

    @property
    def clone_url(self) -> str:
        if self.base.repo and self.base.repo.clone_url:
            return self.base.repo.clone_url
        return ""


class _Authored(BaseModel):
    """Fields shared by issue comments and reviews. GitHub sends null for
    empty bodies and for deleted ("ghost") accounts."""

    id: int
    body: str = ""
    user: User = Field(default_factory=User)
    author_association: str = ""
    html_url: str = ""

    @field_validator("body", mode="before")
    @classmethod
    def _null_body(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("user", mode="before")
    @classmethod
    def _ghost_user(cls, value: Any) -> Any:
        return {} if value is None else value


class Comment(_Authored):
    created_at: datetime
    updated_at: Optional[datetime] = None


class Review(_Authored):
    state: str = ""
    submitted_at: Optional[datetime] = None


# -- Step params --


class IntegrationTool(str, Enum):
    rebase = "rebase"
    merge = "merge"
    checkout = "checkout"


class InParams(_Strict):
    comment_file: str = DEFAULT_COMMENT_FILE
    source_path: str = DEFAULT_SOURCE_PATH
    git_depth: int = 0
    submodules: bool = False
    fetch_tags: bool = False
    skip_download: bool = False
    integration_tool: IntegrationTool = IntegrationTool.rebase

    @field_validator("comment_file", mode="before")
    @classmethod
    def _default_comment_file(cls, value: Any) -> Any:
        return value or DEFAULT_COMMENT_FILE

    @field_validator("source_path", mode="before")
    @classmethod
    def _default_source_path(cls, value: Any) -> Any:
        return value or DEFAULT_SOURCE_PATH

    @field_validator("integration_tool", mode="before")
    @classmethod
    def _default_tool(cls, value: Any) -> Any:
        return value or IntegrationTool.rebase


class OutParams(_Strict):
    path: str = ""
    state: str = ""
    comment: str = ""
    comment_file: str = ""
    labels: list[str] = Field(default_factory=list)
    add_labels: list[str] = Field(default_factory=list)
    remove_labels: list[str] = Field(default_factory=list)
    delete_last_comment: bool = False

    @field_validator("labels", "add_labels", "remove_labels", mode="before")
    @classmethod
    def _null_list(cls, value: Any) -> Any:
        return [] if value is None else value


# -- Requests and responses --


class CheckRequest(_Strict):
    source: Source
    version: Optional[Version] = None


class InRequest(_Strict):
    source: Source
    version: Version
    params: InParams = Field(default_factory=InParams)

    @field_validator("params", mode="before")
    @classmethod
    def _null_params(cls, value: Any) -> Any:
        return {} if value is None else value


class OutRequest(_Strict):
    source: Source
    params: OutParams = Field(default_factory=OutParams)

    @field_validator("params", mode="before")
    @classmethod
    def _null_params(cls, value: Any) -> Any:
        return {} if value is None else value


class InResponse(BaseModel):
    version: Version
    metadata: Metadata = Field(default_factory=Metadata)

    def dump(self) -> dict[str, Any]:
        return {"version": self.version.dump(), "metadata": self.metadata.model_dump()}


class OutResponse(InResponse):
    pass
