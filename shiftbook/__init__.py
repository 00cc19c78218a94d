"""shiftbook: configuration, SQLite storage, employee directory and MCP server around shift_core."""
