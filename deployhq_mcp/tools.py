"""Tool registry: names, descriptions, input validators and published schemas.

Pure metadata and parsing. No I/O, no mutable state: safe to share across
every session.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

from mcp import types
from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Input models
# ---------------------------------------------------------------------------


class _ToolInput(BaseModel):
    """Strict types, unknown keys ignored."""

    model_config = ConfigDict(strict=True, extra="ignore")


class ListProjectsInput(_ToolInput):
    pass


class GetProjectInput(_ToolInput):
    permalink: str = Field(description="Project permalink or identifier")


class ListServersInput(_ToolInput):
    project: str = Field(description="Project permalink")


class ListDeploymentsInput(_ToolInput):
    project: str = Field(description="Project permalink")
    page: int | None = Field(default=None, description="Page number for pagination (optional)")
    server_uuid: str | None = Field(
        default=None, description="Filter deployments by server UUID (optional)"
    )


class GetDeploymentInput(_ToolInput):
    project: str = Field(description="Project permalink")
    uuid: str = Field(description="Deployment UUID")


class GetDeploymentLogInput(_ToolInput):
    project: str = Field(description="Project permalink")
    uuid: str = Field(description="Deployment UUID")


class CreateDeploymentInput(_ToolInput):
    project: str = Field(description="Project permalink")
    parent_identifier: str = Field(description="Server or server group UUID to deploy to")
    start_revision: str = Field(description="Starting commit hash or revision")
    end_revision: str = Field(
        description="Ending commit hash or revision (usually HEAD or latest)"
    )
    branch: str | None = Field(default=None, description="Branch to deploy from (optional)")
    mode: Literal["queue", "preview"] | None = Field(
        default=None,
        description=(
            'Deployment mode: "queue" to deploy immediately, '
            '"preview" to preview changes (optional)'
        ),
    )
    copy_config_files: bool | None = Field(
        default=None, description="Whether to copy configuration files (optional)"
    )
    run_build_commands: bool | None = Field(
        default=None, description="Whether to run build commands (optional)"
    )
    use_build_cache: bool | None = Field(
        default=None, description="Whether to use the build cache (optional)"
    )
    use_latest: str | None = Field(
        default=None,
        description='Set to "1" to use the last deployed commit as start_revision (optional)',
    )


# ---------------------------------------------------------------------------
# Published JSON schema
# ---------------------------------------------------------------------------


def _collapse_nullable(prop: dict[str, Any]) -> dict[str, Any]:
    """Turn pydantic's ``anyOf: [X, {type: null}]`` into plain X."""
    out = {k: v for k, v in prop.items() if k not in ("title", "anyOf")}
    if out.get("default", "") is None:
        out.pop("default")
    variants = [v for v in prop.get("anyOf", []) if v.get("type") != "null"]
    if len(variants) == 1:
        merged = dict(variants[0])
        merged.update(out)
        return merged
    if "anyOf" in prop:
        out["anyOf"] = variants
    return out


def input_schema(model: type[BaseModel]) -> dict[str, Any]:
    """JSON schema for a tool input model, in the MCP ``inputSchema`` shape."""
    raw = model.model_json_schema()
    schema: dict[str, Any] = {
        "type": "object",
        "properties": {
            name: _collapse_nullable(prop) for name, prop in raw.get("properties", {}).items()
        },
    }
    required = raw.get("required", [])
    if required:
        schema["required"] = list(required)
    return schema


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ToolDescriptor:
    name: str
    description: str
    input_model: type[BaseModel]
    mutating: bool = False

    @property
    def input_schema(self) -> dict[str, Any]:
        return input_schema(self.input_model)

    def to_mcp_tool(self) -> types.Tool:
        return types.Tool(
            name=self.name,
            description=self.description,
            inputSchema=self.input_schema,
        )


TOOLS: tuple[ToolDescriptor, ...] = (
    ToolDescriptor(
        "list_projects",
        "List all projects in the DeployHQ account. Returns project names, permalinks, "
        "repository information, and deployment status.",
        ListProjectsInput,
    ),
    ToolDescriptor(
        "get_project",
        "Get detailed information about a specific project including repository details, "
        "SSH keys, and deployment URLs.",
        GetProjectInput,
    ),
    ToolDescriptor(
        "list_servers",
        "List all servers configured for a project. Returns server names, hostnames, "
        "protocols, paths, and deployment settings.",
        ListServersInput,
    ),
    ToolDescriptor(
        "list_deployments",
        "List deployments for a project with pagination support. Returns deployment status, "
        "timestamps, revisions, and server information. Can be filtered by server UUID.",
        ListDeploymentsInput,
    ),
    ToolDescriptor(
        "get_deployment",
        "Get detailed information about a specific deployment including its status, logs, "
        "files changed, and server details.",
        GetDeploymentInput,
    ),
    ToolDescriptor(
        "get_deployment_log",
        "Get the deployment log for a specific deployment. Returns the complete log output "
        "as text, useful for debugging failed or completed deployments.",
        GetDeploymentLogInput,
    ),
    ToolDescriptor(
        "create_deployment",
        "Create a new deployment for a project. Can queue for immediate deployment or create "
        "a preview. Requires server UUID and commit revisions.",
        CreateDeploymentInput,
        mutating=True,
    ),
)

TOOLS_BY_NAME: dict[str, ToolDescriptor] = {tool.name: tool for tool in TOOLS}

TOOL_NAMES: tuple[str, ...] = tuple(TOOLS_BY_NAME)


def get_tool(name: str) -> ToolDescriptor | None:
    return TOOLS_BY_NAME.get(name)


def validate_arguments(tool: ToolDescriptor, arguments: dict[str, Any] | None) -> BaseModel:
    """Parse raw arguments with the tool's model. Raises pydantic.ValidationError."""
    return tool.input_model.model_validate({} if arguments is None else arguments)


def list_tool_definitions() -> list[types.Tool]:
    """Registry metadata in MCP ``tools/list`` form, in registry order."""
    return [tool.to_mcp_tool() for tool in TOOLS]
