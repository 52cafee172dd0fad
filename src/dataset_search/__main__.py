"""Entry point for the dataset-search MCP server."""

from dataset_search.server import create_server


def main() -> None:
    """Run the dataset-search MCP server."""
    server = create_server()
    server.run(transport="stdio")


if __name__ == "__main__":
    main()
