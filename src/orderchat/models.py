from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal

from pydantic import BaseModel, Field, field_validator

Role = Literal["system", "user", "assistant", "function"]


@dataclass
class Message:
    """A single conversation entry in OpenAI chat format.

    ``function`` messages carry a tool result back to the model and are tagged
    with the tool ``name``. Assistant messages that request a tool carry
    ``function_call`` ({"name", "arguments"}) and usually no content.
    """

    role: Role
    content: str | None = None
    name: str | None = None
    function_call: Dict[str, str] | None = None

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(role="system", content=content)

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role="user", content=content)

    @classmethod
    def assistant(
        cls, content: str | None, function_call: Dict[str, str] | None = None
    ) -> "Message":
        return cls(role="assistant", content=content, function_call=function_call)

    @classmethod
    def function_result(cls, name: str, content: str) -> "Message":
        return cls(role="function", content=content, name=name)

    def to_api(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"role": self.role, "content": self.content}
        if self.name is not None:
            data["name"] = self.name
        if self.function_call is not None:
            data["function_call"] = dict(self.function_call)
        return data


@dataclass(frozen=True)
class ToolDescriptor:
    """A callable operation published by the tool provider."""

    name: str
    description: str
    method: str
    endpoint: str
    input_schema: Dict[str, Any] | None = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ToolDescriptor":
        """Build a descriptor from a catalog entry.

        Raises:
            KeyError: If name, method or endpoint is missing.
            TypeError: If the entry is not a mapping.
        """
        if not isinstance(data, dict):
            raise TypeError(f"Tool entry must be an object, got {type(data).__name__}")
        schema = data.get("inputSchema")
        return cls(
            name=str(data["name"]),
            description=str(data.get("description") or ""),
            method=str(data["method"]),
            endpoint=str(data["endpoint"]),
            input_schema=schema if isinstance(schema, dict) else None,
        )


@dataclass
class ToolInvocationRecord:
    """One tool call made during a turn (not stored in the conversation)."""

    function_name: str
    request: Dict[str, Any]
    response: Any


@dataclass
class TurnResult:
    response: str
    session_id: str
    functions_called: List[ToolInvocationRecord] = field(default_factory=list)


class ChatRequest(BaseModel):
    message: str = Field(..., description="User message")
    session_id: str | None = Field(default=None, description="Conversation id")

    @field_validator("message")
    @classmethod
    def message_not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("Message is required")
        return value


class FunctionCallInfo(BaseModel):
    function_name: str
    request: Dict[str, Any] = Field(default_factory=dict)
    response: Any = None


class ChatResponse(BaseModel):
    response: str
    session_id: str | None = None
    functions_called: List[FunctionCallInfo] = Field(default_factory=list)

    @classmethod
    def from_turn(cls, result: TurnResult) -> "ChatResponse":
        return cls(
            response=result.response,
            session_id=result.session_id,
            functions_called=[
                FunctionCallInfo(
                    function_name=record.function_name,
                    request=record.request,
                    response=record.response,
                )
                for record in result.functions_called
            ],
        )
