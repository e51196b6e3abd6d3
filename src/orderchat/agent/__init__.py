"""Tool-calling chat agent: schema translation, tool invocation and the turn loop."""

from .agent import (
    OrderChatAgentService,
    build_agent_service,
    close_agent_service,
    get_agent_service,
)
from .invoker import ToolInvoker
from .schema import build_system_prompt, to_function_declaration

__all__ = [
    "OrderChatAgentService",
    "ToolInvoker",
    "build_agent_service",
    "build_system_prompt",
    "close_agent_service",
    "get_agent_service",
    "to_function_declaration",
]
