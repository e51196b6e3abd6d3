from typing import Any, Dict, Iterable, List

from ..models import ToolDescriptor


def to_function_declaration(tool: ToolDescriptor) -> Dict[str, Any]:
    """Convert a tool descriptor into an OpenAI function declaration.

    The input schema's ``type``, ``properties`` and ``required`` are passed
    through as-is; nothing is validated. A tool without a schema becomes a
    zero-argument function.
    """
    schema = tool.input_schema
    if schema is None:
        parameters: Dict[str, Any] = {"type": "object", "properties": {}, "required": []}
    else:
        parameters = {
            "type": schema.get("type", "object"),
            "properties": schema.get("properties", {}),
            "required": schema.get("required", []),
        }
    return {
        "name": tool.name,
        "description": tool.description,
        "parameters": parameters,
    }


def to_function_declarations(tools: Iterable[ToolDescriptor]) -> List[Dict[str, Any]]:
    return [to_function_declaration(tool) for tool in tools]


def build_system_prompt(base_prompt: str, tools: Iterable[ToolDescriptor]) -> str:
    """Append one bullet per cataloged tool to the base instructions."""
    lines = [base_prompt, "", "What you can do:"]
    lines.extend(f"- {tool.description}" for tool in tools)
    return "\n".join(lines) + "\n"
