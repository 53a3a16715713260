"""Core protocol logic — envelope models, codec, OAuth signing and the client.

This module is framework-agnostic. It has no dependency on MCP, FastMCP,
or any server framework.
"""
