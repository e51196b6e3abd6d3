import json
import logging
from typing import Any, Dict, List

from openai.types.chat import ChatCompletionMessage

from ..models import Message, ToolInvocationRecord, TurnResult
from ..services.conversation_store import ConversationStore
from ..services.tool_catalog import ToolCatalogCache, build_tool_catalog
from ..settings import Settings, get_settings
from .completion import CompletionClient
from .invoker import ToolInvoker, parse_result
from .schema import build_system_prompt, to_function_declarations

logger = logging.getLogger(__name__)


class OrderChatAgentService:
    """Runs one chat turn at a time against the completion model and the tool backend.

    A turn appends the user message, asks the model for an answer with the
    tool catalog attached and, if the model requests a function, invokes it
    once and asks the model again with the result. Only one tool call is
    served per turn; a second request in the follow-up answer is not invoked.
    """

    def __init__(
        self,
        completion: CompletionClient,
        catalog: ToolCatalogCache,
        invoker: ToolInvoker,
        store: ConversationStore | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.completion = completion
        self.catalog = catalog
        self.invoker = invoker
        self.store = store or ConversationStore()
        self.settings = settings or get_settings()

    async def build_system_prompt(self) -> str:
        tools = await self.catalog.get_tools()
        return build_system_prompt(self.settings.agent_system_prompt, tools)

    async def chat(self, session_id: str, user_message: str) -> TurnResult:
        """Process one user message and return the final answer.

        Args:
            session_id: Conversation identifier.
            user_message: User query text.

        Returns:
            TurnResult: Final text plus the tool calls made in this turn. On any
                failure the text is the configured apology and no calls are
                reported; messages already stored are kept.
        """
        calls: List[ToolInvocationRecord] = []
        try:
            system_prompt = await self.build_system_prompt()
            self.store.initialize_session(session_id, system_prompt)

            functions = to_function_declarations(await self.catalog.get_tools())
            self.store.add_message(session_id, Message.user(user_message))

            history = self._history_payload(session_id)
            logger.info("Session %s: sending %d messages", session_id, len(history))
            response = await self.completion.complete(history, functions)

            if not response.choices:
                logger.warning("Session %s: completion returned no choices", session_id)
                return TurnResult(self.settings.no_response_message, session_id, calls)

            message = response.choices[0].message
            if message.function_call is not None:
                logger.info("Function call detected: %s", message.function_call.name)
                answer = await self._handle_function_call(session_id, message, calls)
            else:
                answer = message.content or ""
                self.store.add_message(session_id, Message.assistant(answer))

            return TurnResult(answer, session_id, calls)

        except Exception:
            logger.exception("Error in chat turn for session %s", session_id)
            return TurnResult(self.settings.apology_message, session_id, [])

    async def _handle_function_call(
        self,
        session_id: str,
        message: ChatCompletionMessage,
        calls: List[ToolInvocationRecord],
    ) -> str:
        name = message.function_call.name
        raw_arguments = message.function_call.arguments or "{}"
        arguments: Dict[str, Any] = json.loads(raw_arguments)
        if not isinstance(arguments, dict):
            raise ValueError(f"Function arguments must be an object: {raw_arguments}")

        result = await self.invoker.invoke(name, arguments)
        logger.debug("Function result: %s", result)
        calls.append(
            ToolInvocationRecord(
                function_name=name, request=arguments, response=parse_result(result)
            )
        )

        self.store.add_message(
            session_id,
            Message.assistant(
                message.content,
                function_call={"name": name, "arguments": raw_arguments},
            ),
        )
        self.store.add_message(session_id, Message.function_result(name, result))

        follow_up = await self.completion.complete(self._history_payload(session_id))
        if not follow_up.choices:
            logger.warning("Session %s: follow-up returned no choices", session_id)
            return self.settings.function_done_message

        final = follow_up.choices[0].message
        if final.function_call is not None:
            logger.warning(
                "Session %s: follow-up requested %s; chained tool calls are not served",
                session_id,
                final.function_call.name,
            )
        answer = final.content or ""
        self.store.add_message(session_id, Message.assistant(answer))
        return answer

    def _history_payload(self, session_id: str) -> List[Dict[str, Any]]:
        return [msg.to_api() for msg in self.store.get_history(session_id)]

    async def aclose(self) -> None:
        await self.invoker.aclose()
        await self.catalog.aclose()
        await self.completion.close()


def build_agent_service(settings: Settings | None = None) -> OrderChatAgentService:
    """Wire an agent service from settings."""
    settings = settings or get_settings()
    catalog = build_tool_catalog()
    invoker = ToolInvoker(
        catalog=catalog,
        base_url=settings.resolved_tool_backend_url,
        timeout=settings.tool_request_timeout_seconds,
    )
    completion = CompletionClient(
        model=settings.model,
        api_key=settings.openai_api_key,
        base_url=settings.openai_base_url,
        temperature=settings.temperature,
        timeout=settings.model_request_timeout_seconds,
    )
    return OrderChatAgentService(
        completion=completion, catalog=catalog, invoker=invoker, settings=settings
    )


_SERVICE: OrderChatAgentService | None = None


def get_agent_service() -> OrderChatAgentService:
    """Return the process-wide agent service, building it on first use."""
    global _SERVICE
    if _SERVICE is None:
        _SERVICE = build_agent_service()
    return _SERVICE


async def close_agent_service() -> None:
    """Release the agent service's HTTP clients. Idempotent."""
    global _SERVICE
    if _SERVICE is not None:
        await _SERVICE.aclose()
        _SERVICE = None
        logger.debug("Agent service closed")
