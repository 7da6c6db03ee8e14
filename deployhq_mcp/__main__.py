"""Allow ``python -m deployhq_mcp`` to start the stdio server."""

from deployhq_mcp.cli import main

main()
