"""Bridge Package - templates, process execution and invocation.

Components:
- input_template: compile input templates into an argument AST
- renderer: render the AST with tool-call arguments into argv
- output_pattern: compile output templates and parse process output
- process: spawn and supervise tool processes
- invoker: the ToolBridge tying them together

Note: Import from the submodules directly to avoid circular imports with
mcp_serve.tools.
"""

__all__ = ["input_template", "renderer", "output_pattern", "process", "invoker"]
