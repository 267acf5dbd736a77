"""FoodHub MCP Server - restaurant carts and orders for MCP clients."""

__version__ = "0.1.0"
