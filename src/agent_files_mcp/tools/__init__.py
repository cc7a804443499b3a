"""FastMCP sub-servers exposing guarded file access and agent discovery."""
