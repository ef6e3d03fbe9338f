"""Local naming of projected MCP capabilities.

Projected tools are addressed as ``mcp__{server}__{capability}``. The id must
be a pure, collision-free function of the (server reference, capability name)
pair, while also satisfying the host registry's snake_case rule. Names that
survive snake-casing unchanged map directly; any other name gets a short
digest suffix so two raw names that snake-case alike never share an id.
"""

import hashlib
import re
from urllib.parse import urlparse

PROJECTED_ID_PREFIX = "mcp"
ID_SEPARATOR = "__"
DEFAULT_SERVER_NAME = "mcp-server"


def to_snake_case(name: str) -> str:
    """Convert a name to snake_case.

    Handles camelCase, PascalCase, kebab-case, and space-separated names.

    Examples:
        >>> to_snake_case("searchRepos")
        'search_repos'
        >>> to_snake_case("ListDirectory")
        'list_directory'
        >>> to_snake_case("list-directory")
        'list_directory'
        >>> to_snake_case("APIClient")
        'api_client'
    """
    name = re.sub(r"[-\s.]+", "_", name)

    # "searchRepos" -> "search_Repos"
    name = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", name)

    # "APIClient" -> "API_Client"
    name = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", name)

    name = name.lower()

    # Anything the registry would reject becomes a separator
    name = re.sub(r"[^a-z0-9_]", "_", name)

    name = re.sub(r"_+", "_", name)
    return name.strip("_")


def make_projected_tool_id(server_ref: str, capability_name: str) -> str:
    """Build the registry id of a projected capability.

    Args:
        server_ref: Reference of the MCP server (connector id or config key)
        capability_name: Tool name exactly as the server reports it

    Returns:
        ``mcp__{server}__{capability}``, plus ``__h{digest}`` when either
        name is not already snake_case.

    Examples:
        >>> make_projected_tool_id("github", "search_repos")
        'mcp__github__search_repos'
        >>> make_projected_tool_id("github", "searchRepos")  # doctest: +ELLIPSIS
        'mcp__github__search_repos__h...'
    """
    server_snake = to_snake_case(server_ref)
    capability_snake = to_snake_case(capability_name)
    local_id = ID_SEPARATOR.join((PROJECTED_ID_PREFIX, server_snake, capability_snake))

    if server_snake == server_ref and capability_snake == capability_name:
        return local_id

    # A snake_case component never contains "__", so the fourth segment
    # cannot be produced by the direct form above.
    digest = hashlib.sha1(f"{server_ref}\x00{capability_name}".encode("utf-8")).hexdigest()[:8]
    return f"{local_id}{ID_SEPARATOR}h{digest}"


def derive_server_name(url: str) -> str:
    """Derive a readable server name from its endpoint URL.

    Leading ``www.``, ``api.`` or ``mcp.`` labels are dropped and the
    second-level domain is used.

    Examples:
        >>> derive_server_name("https://mcp.github.com/sse")
        'github'
        >>> derive_server_name("http://localhost:3000/mcp")
        'localhost'
    """
    try:
        hostname = (urlparse(url).hostname or "").lower()
    except ValueError:
        return DEFAULT_SERVER_NAME
    if not hostname:
        return DEFAULT_SERVER_NAME

    hostname = re.sub(r"^(www|api|mcp)\.", "", hostname)
    parts = hostname.split(".")
    name = parts[-2] if len(parts) > 1 else parts[0]
    return re.sub(r"[^a-z0-9]", "-", name)
