"""
Base Agent
==========

Abstract base classes for every node of the workflow, plus the LLM factory.
Supports multiple LLM providers.

SUPPORTED PROVIDERS:
1. openai      - OpenAI (default)
2. groq        - Groq Cloud (FREE tier, very fast)
3. google      - Google Gemini (FREE tier)
4. ollama      - Local LLMs (FREE, requires Ollama installed)
5. huggingface - HuggingFace API (FREE tier available)

The supervisor, researcher and replanner rely on tool calling, so the
provider must support ``bind_tools``.

AGENT CONTRACT:
    execute(state)       -> StateUpdate   (may raise)
    safe_execute(state)  -> StateUpdate   (recovers through recover())

Agents never modify the state they receive. They return a partial
StateUpdate which only the workflow driver merges.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import HumanMessage

from bitcoin_agent.config import Settings, get_settings
from bitcoin_agent.schemas.models import AgentType, Route
from bitcoin_agent.schemas.state import StateUpdate, WorkflowState

logger = logging.getLogger(__name__)


def create_llm(
    provider: Optional[str] = None,
    temperature: Optional[float] = None,
) -> BaseChatModel:
    """
    Create an LLM instance based on the configured provider.

    Args:
        provider: Override the default provider from settings
        temperature: Override the default temperature

    Returns:
        A LangChain chat model instance

    Raises:
        ValueError: If provider is not supported
    """
    settings = get_settings()
    provider = provider or settings.llm_provider
    temp = temperature if temperature is not None else settings.llm_temperature
    timeout = settings.llm_timeout_seconds

    logger.info(f"Creating LLM with provider: {provider}")

    if provider == "openai":
        from langchain_openai import ChatOpenAI
        return ChatOpenAI(
            model=settings.openai_model,
            api_key=settings.openai_api_key or None,
            temperature=temp,
            timeout=timeout,
        )

    elif provider == "groq":
        from langchain_groq import ChatGroq
        return ChatGroq(
            model=settings.groq_model,
            api_key=settings.groq_api_key,
            temperature=temp,
            timeout=timeout,
        )

    elif provider == "google":
        from langchain_google_genai import ChatGoogleGenerativeAI
        return ChatGoogleGenerativeAI(
            model=settings.google_model,
            google_api_key=settings.google_api_key,
            temperature=temp,
            timeout=timeout,
        )

    elif provider == "ollama":
        from langchain_community.chat_models import ChatOllama
        return ChatOllama(
            model=settings.ollama_model,
            base_url=settings.ollama_base_url,
            temperature=temp,
            timeout=int(timeout),
        )

    elif provider == "huggingface":
        from langchain_huggingface import ChatHuggingFace, HuggingFaceEndpoint
        llm = HuggingFaceEndpoint(
            repo_id=settings.huggingface_model,
            huggingfacehub_api_token=settings.huggingface_api_key,
            temperature=temp,
            max_new_tokens=1024,
            timeout=timeout,
        )
        return ChatHuggingFace(llm=llm)

    else:
        raise ValueError(f"Unsupported LLM provider: {provider}")


def message_text(message) -> str:
    """Extract text content from a chat model reply."""
    content = getattr(message, "content", message)
    if isinstance(content, list):
        # Some providers return content blocks
        return "".join(
            block.get("text", "") if isinstance(block, dict) else str(block)
            for block in content
        )
    return str(content)


class BaseAgent(ABC):
    """
    Abstract base class for all agents.

    Each agent must implement:
    - agent_type: What kind of agent this is
    - execute(): Main logic for the agent

    Provides:
    - Multi-provider LLM initialization
    - Consistent error handling
    - Logging infrastructure
    """

    def __init__(
        self,
        llm: Optional[BaseChatModel] = None,
        provider: Optional[str] = None,
        temperature: Optional[float] = None,
        settings: Optional[Settings] = None,
    ):
        """
        Initialize the base agent.

        Args:
            llm: Pre-configured LLM (optional, for testing/customization)
            provider: Override LLM provider from settings
            temperature: Override default temperature
            settings: Override application settings (limits, sources)
        """
        self._settings = settings or get_settings()

        if llm is not None:
            self._llm = llm
        else:
            self._llm = create_llm(provider, temperature)

        logger.info(f"Initialized {self.agent_type.value} agent")

    @property
    @abstractmethod
    def agent_type(self) -> AgentType:
        """Return the type of this agent."""
        pass

    @property
    def label(self) -> str:
        """Display name used in step results and message names."""
        return self.agent_type.value.capitalize()

    @abstractmethod
    async def execute(self, state: WorkflowState) -> StateUpdate:
        """Execute the agent's main logic."""
        pass

    async def safe_execute(self, state: WorkflowState) -> StateUpdate:
        """
        Execute with error handling wrapper.

        Agents that can recover locally override recover(); the rest let
        the error reach the driver.
        """
        try:
            logger.debug(f"{self.agent_type.value} starting execution")
            update = await self.execute(state)
            logger.debug(f"{self.agent_type.value} completed successfully")
            return update

        except Exception as e:
            logger.error(
                f"{self.agent_type.value} failed: {type(e).__name__}: {e}",
                exc_info=True
            )
            return self.recover(state, e)

    def recover(self, state: WorkflowState, error: Exception) -> StateUpdate:
        """Turn an execution error into a state update. Re-raises by default."""
        raise error

    def __repr__(self) -> str:
        """String representation for debugging."""
        return f"{self.__class__.__name__}(type={self.agent_type.value})"


class WorkerAgent(BaseAgent):
    """
    Base class for agents that work through plan steps.

    A worker consumes exactly one plan step per invocation and records
    exactly one past step, whether it succeeded or not.
    """

    # Step text used when the plan is already empty
    fallback_step: str = "No plan step provided."

    def step_for(self, state: WorkflowState) -> str:
        """The step this worker will handle."""
        return state.current_step or self.fallback_step

    def step_update(
        self,
        state: WorkflowState,
        result: str,
        **changes,
    ) -> StateUpdate:
        """Build the update recording a completed step."""
        step = self.step_for(state)
        return StateUpdate(
            past_steps=[(step, f"{self.label} Result: {result}")],
            plan=state.plan[1:],
            messages=[
                HumanMessage(
                    content=f"{self.label} completed: {step}\nResult: {result}",
                    name=self.label,
                )
            ],
            next=Route.SUPERVISOR,
            **changes,
        )

    def recover(self, state: WorkflowState, error: Exception) -> StateUpdate:
        """Record the failure as this step's result and move on."""
        step = self.step_for(state)
        return StateUpdate(
            past_steps=[(step, f"{self.label} Error: {error}")],
            plan=state.plan[1:],
            next=Route.SUPERVISOR,
        )
