"""CircleCI entity models."""

from pydantic import BaseModel, ConfigDict, Field


class EnvVar(BaseModel):
    """Name/value pair stored in a CircleCI context."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description='Variable name')
    value: str = Field(..., description='Variable value', repr=False)


class ProjectEnvVar(BaseModel):
    """Project environment variable; CircleCI only returns masked values."""

    name: str = Field(..., description='Variable name')
    value: str = Field(default='', description='Masked value')


class Context(BaseModel):
    """CircleCI execution context."""

    id: str = Field(..., description='Context ID')
    name: str = Field(..., description='Context name')


class ContextVariable(BaseModel):
    """Variable attached to a context."""

    variable: str = Field(..., description='Variable name')
    context_id: str = Field(..., description='Owning context ID')
