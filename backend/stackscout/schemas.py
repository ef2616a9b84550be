"""
Pydantic schemas for StackScout request/response models and core data types.
"""

from enum import Enum
from typing import List, Optional, Set

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Platform(str, Enum):
    """Supported source-code hosting platforms."""
    GITHUB = "github"
    GITLAB = "gitlab"
    BITBUCKET = "bitbucket"
    AZURE = "azure"
    CODEBERG = "codeberg"
    GITEA = "gitea"
    SOURCEHUT = "sourcehut"


class RepositoryIdentifier(BaseModel):
    """A parsed repository URL. Immutable once created."""
    model_config = ConfigDict(frozen=True)

    platform: Platform = Field(..., description="Hosting platform")
    owner: str = Field(..., min_length=1, description="Owner, organization or namespace")
    repo: str = Field(..., min_length=1, description="Repository name")
    host: str = Field(..., min_length=1, description="Host name of the platform instance")
    project: Optional[str] = Field(None, description="Project scope (Azure DevOps only)")


class AnalyzeRequest(BaseModel):
    """Body of ``POST /api/repo/analyze``."""
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "url": "https://github.com/acme/widgets",
                "token": None,
            }
        }
    )

    url: str = Field(..., description="Repository URL on a supported platform")
    token: Optional[str] = Field(None, description="Optional access token for private repositories")

    @field_validator("token")
    @classmethod
    def blank_token_is_absent(cls, v):
        """A token that is empty after trimming is treated as not supplied."""
        if v is None:
            return None
        v = v.strip()
        return v or None


class ExtensionCount(BaseModel):
    """One bucket of the file-extension histogram."""
    ext: str
    count: int = Field(..., ge=1)


class DetectionResult(BaseModel):
    """Outcome of one repository analysis, before it is shaped for the API."""
    tech_stack: Set[str] = Field(default_factory=set)
    repository: RepositoryIdentifier
    file_count: int = Field(..., ge=0)
    sampled_file_count: int = Field(0, ge=0)
    top_extensions: List[ExtensionCount] = Field(default_factory=list, max_length=10)
    has_package_manifest: bool = False
    has_python_requirements: bool = False
    tree_truncated: bool = False


class RepositorySummary(BaseModel):
    """Repository metadata returned alongside the detected stack."""
    model_config = ConfigDict(populate_by_name=True)

    platform: Platform
    platform_name: str = Field(..., alias="platformName")
    owner: str
    repo: str
    project: Optional[str] = None
    host: str
    url: str
    file_count: int = Field(..., alias="fileCount", ge=0)
    sampled_file_count: int = Field(0, alias="sampledFileCount", ge=0)
    top_extensions: List[ExtensionCount] = Field(default_factory=list, alias="topExtensions")
    has_package_manifest: bool = Field(False, alias="hasPackageManifest")
    has_python_requirements: bool = Field(False, alias="hasPythonRequirements")
    tree_truncated: bool = Field(False, alias="treeTruncated")


class AnalyzeResponse(BaseModel):
    """Success body of ``POST /api/repo/analyze``."""
    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "techStack": ["javascript", "react", "typescript"],
                "repository": {
                    "platform": "github",
                    "platformName": "GitHub",
                    "owner": "acme",
                    "repo": "widgets",
                    "host": "github.com",
                    "url": "https://github.com/acme/widgets",
                    "fileCount": 3,
                    "sampledFileCount": 3,
                    "topExtensions": [{"ext": ".ts", "count": 2}],
                    "hasPackageManifest": True,
                    "hasPythonRequirements": False,
                    "treeTruncated": False,
                },
                "detectedCount": 3,
            }
        },
    )

    tech_stack: List[str] = Field(default_factory=list, alias="techStack")
    repository: RepositorySummary
    detected_count: int = Field(..., alias="detectedCount", ge=0)


class PlatformInfo(BaseModel):
    """Entry of ``GET /api/repo/platforms``."""
    model_config = ConfigDict(populate_by_name=True)

    platform: Platform
    name: str
    token_env_var: str = Field(..., alias="tokenEnvVar")
    has_server_token: bool = Field(..., alias="hasServerToken")


class ProblemDetail(BaseModel):
    """Structured failure body."""
    type: str
    title: str
    status: int
    detail: str
