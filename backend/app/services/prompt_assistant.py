import time
from typing import Callable, List, Optional

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage
from langchain_openai import ChatOpenAI

from app.core.config import settings
from app.core.logging import llm_logger
from app.core.monitoring import record_llm_request
from app.services.exceptions import ConfigurationError, UpstreamServiceError

ANALYSIS_TEMPLATE = (
    "Analyze the following prompt and provide feedback on its clarity, specificity, "
    "and potential for generating a high-quality response. Then, offer an enhanced "
    "version of the prompt that incorporates your feedback.\n\n"
    'Original Prompt: "{prompt}"'
)

TAG_INSTRUCTION = (
    "Analyze the following AI prompt and suggest 3 to 5 relevant, one-or-two-word tags "
    "for categorization. The tags should be lowercase and represent the prompt's core "
    "concepts, domain, or intent. Respond with only a comma-separated list of the tags."
)
TAG_EXAMPLE_ANSWER = "marketing, creative, headline"

ModelFactory = Callable[[float, Optional[int]], ChatOpenAI]


def parse_tag_list(text: str) -> List[str]:
    """Split a comma-separated model reply into clean tags"""
    return [tag.strip() for tag in text.split(",") if tag.strip()]


class PromptAssistant:
    """Prompt critique and tag suggestions backed by a chat model"""

    def __init__(self, model_factory: Optional[ModelFactory] = None):
        self._model_factory = model_factory or self._openai_model

    @staticmethod
    def _openai_model(temperature: float, max_tokens: Optional[int]) -> ChatOpenAI:
        config = settings.get_openai_config()
        if not config["api_key"]:
            raise ConfigurationError("OPENAI_API_KEY is not configured")
        return ChatOpenAI(
            model=config["model"],
            temperature=temperature,
            openai_api_key=config["api_key"],
            max_tokens=max_tokens,
            timeout=config["timeout"],
        )

    def _invoke(self, operation: str, messages: List[BaseMessage], temperature: float,
                max_tokens: Optional[int]) -> str:
        model = self._model_factory(temperature, max_tokens)
        start_time = time.time()
        try:
            response = model.invoke(messages)
        except Exception as e:
            record_llm_request(operation, time.time() - start_time, False)
            llm_logger.error("LLM request failed", operation=operation, error=str(e))
            raise UpstreamServiceError(f"{operation} request failed") from e

        duration = time.time() - start_time
        record_llm_request(operation, duration, True)
        llm_logger.info("LLM request completed", operation=operation, duration=duration)
        return response.content if isinstance(response.content, str) else str(response.content)

    def analyze_prompt(self, prompt: str) -> str:
        """Single-turn critique of a prompt with a suggested rewrite"""
        messages = [HumanMessage(content=ANALYSIS_TEMPLATE.format(prompt=prompt))]
        return self._invoke(
            "analyze_prompt",
            messages,
            settings.analysis_temperature,
            settings.analysis_max_tokens,
        )

    def suggest_tags(self, prompt_content: str) -> List[str]:
        """Ask for 3-5 lowercase tags, seeding the chat with one worked example"""
        messages = [
            HumanMessage(content=TAG_INSTRUCTION),
            AIMessage(content=TAG_EXAMPLE_ANSWER),
            HumanMessage(content=prompt_content),
        ]
        reply = self._invoke(
            "suggest_tags",
            messages,
            settings.tag_suggestion_temperature,
            settings.tag_suggestion_max_tokens,
        )
        return parse_tag_list(reply)


_assistant: Optional[PromptAssistant] = None


def get_prompt_assistant() -> PromptAssistant:
    global _assistant
    if _assistant is None:
        _assistant = PromptAssistant()
    return _assistant
