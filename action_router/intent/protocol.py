"""
Intent Resolution — LLM-powered action selection and parameter extraction.

Responsibility:
- Describe every registered action (name, description, schema) to the model
- Build the system/user message pair with the envelope output contract
- Return the raw completion text; parsing happens in the envelope parser
"""

from __future__ import annotations

from datetime import datetime

from action_router.models.chat_client import ChatClient
from action_router.observability.logger import Observability
from action_router.registry.action_registry import ActionRegistry
from action_router.shared.models import ModelPolicy

DEFAULT_LANGUAGE = "English"


class IntentResolver:
    """Ask the model which action to run and with which parameters."""

    def __init__(
        self,
        registry: ActionRegistry,
        chat_client: ChatClient,
        policy: ModelPolicy,
        *,
        language: str = DEFAULT_LANGUAGE,
        context: str | None = None,
    ):
        self.registry = registry
        self.chat_client = chat_client
        self.policy = policy
        self.language = language or DEFAULT_LANGUAGE
        self.context = context or self.build_context()

    def build_context(self) -> str:
        """Default system message enumerating the available actions."""
        lines = [
            f"- {name}: {definition.describe()}\n  Schema: {definition.schema.description()}"
            for name, definition in self.registry.catalog()
        ]
        return "You are a helpful AI assistant.\nAvailable actions:\n" + "\n".join(lines)

    def build_action_list(self) -> str:
        return "\n\n".join(
            f'Action: "{name}"\nDescription: {definition.describe()}\nSchema: {definition.schema.description()}'
            for name, definition in self.registry.catalog()
        )

    def build_prompt(self, user_input: str) -> str:
        """User message: action catalog, literal input and the output contract."""
        language = self.language
        current_year = datetime.now().year
        return f"""You are an AI assistant. Based on the user's input and the available actions below, select the most appropriate action and extract parameters according to its schema.

{self.build_action_list()}

User input: "{user_input}"

After selecting the action and extracting parameters, prepare a user-friendly response in {language}. The response should be concise and clear.

IMPORTANT:
- Action names and parameter names must remain exactly as defined in the schema; never translate them
- Only the response text should be in {language}
- Parameter values should match the schema types exactly
- Make sure ISO date strings are strictly valid (e.g., 'YYYY-MM-DDTHH:MM:SSZ' where SS is max 59)
- If no year is specified in the user input, use the current year ({current_year}) as default

Return only a JSON object with exactly these keys:
- "actionName": string, the exact name of the selected action
- "parameters": object, parameters extracted according to the schema
- "response": string, user-friendly response in {language}

Do not include any other text, explanations, or markdown. Return only JSON."""

    def build_messages(self, user_input: str) -> list[dict[str, str]]:
        return [
            {"role": "system", "content": self.context},
            {"role": "user", "content": self.build_prompt(user_input)},
        ]

    async def resolve(self, user_input: str, observability: Observability | None = None) -> str:
        """Send the request and return the raw completion text."""
        obs = observability or Observability()
        messages = self.build_messages(user_input)
        obs.emit(
            "AI_REQUEST",
            "Sending request to AI",
            {"prompt_length": len(messages[1]["content"]), "language": self.language},
        )
        raw = await self.chat_client.complete(messages, self.policy, observability=obs)
        obs.emit(
            "AI_RESPONSE",
            "Received response from AI",
            {"response_length": len(raw), "response": raw[:200] + ("..." if len(raw) > 200 else "")},
        )
        return raw
