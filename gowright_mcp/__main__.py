from gowright_mcp.server import main

main()
