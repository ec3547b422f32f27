# =============================================================================
# tools/__init__.py
# =============================================================================
# FastMCP tool wrappers around core/.
#
# Each tool:
#   1. logs the call (stderr; stdout belongs to MCP)
#   2. calls exactly one core/ operation
#   3. converts dataclass results to dicts
#   4. converts core errors to ToolError
#
# Tools hold no protocol logic: batch shapes, reference resolution and
# rejection handling all live in core/.
# =============================================================================
