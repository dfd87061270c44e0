"""
Default prompts of the agents and the prompt template layout.

The prompt of an agent is a ChatPromptTemplate with five parts:

1. the system message (system prompt plus, for agents without native
    tool calling, the description of the tools and of the response
    format);
2. the 'chat_history' placeholder, filled from memory;
3. the human message, a template formatted with the input variables
    ('{input}' by default);
4. the 'agent_scratchpad' placeholder, the tool calls of the current
    run with their results;
5. the 'ultimatum' placeholder, empty until the executor requires a
    final answer.
"""

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_core.prompts import (
    ChatPromptTemplate,
    HumanMessagePromptTemplate,
    MessagesPlaceholder,
)

DEFAULT_SYSTEM_PROMPT = """Assistant is designed to be able to assist with a wide range of tasks, from answering simple questions to providing in-depth explanations and discussions on a wide range of topics. As a language model, Assistant is able to generate human-like text based on the input it receives, allowing it to engage in natural-sounding conversations and provide responses that are coherent and relevant to the topic at hand.

Assistant is constantly learning and improving, and its capabilities are constantly evolving. It is able to process and understand large amounts of text, and can use this knowledge to provide accurate and informative responses to a wide range of questions. Additionally, Assistant is able to generate its own text based on the input it receives, allowing it to engage in discussions and provide explanations and descriptions on a wide range of topics.

Overall, Assistant is a powerful system that can help with a wide range of tasks and provide valuable insights and information on a wide range of topics. Whether you need help with a specific question or just want to have a conversation about a particular topic, Assistant is here to assist."""

DEFAULT_INITIAL_PROMPT = "{input}"

FORCE_FINAL_ANSWER = (
    "Now it's time you MUST give your absolute best final answer. "
    "You'll ignore all previous instructions, stop using any tools, "
    "and just return your absolute BEST Final answer."
)

CHAT_HISTORY = "chat_history"
AGENT_SCRATCHPAD = "agent_scratchpad"
ULTIMATUM = "ultimatum"


def create_prompt(
    system_prompt: str, initial_prompt: str = DEFAULT_INITIAL_PROMPT
) -> ChatPromptTemplate:
    """Create the prompt template of an agent.

    The system prompt is used verbatim (it is not a template, so that
    the JSON of tool descriptions needs no escaping). The initial
    prompt is a template in f-string format.
    """
    return ChatPromptTemplate.from_messages(
        [
            SystemMessage(content=system_prompt),
            MessagesPlaceholder(CHAT_HISTORY, optional=True),
            HumanMessagePromptTemplate.from_template(initial_prompt),
            MessagesPlaceholder(AGENT_SCRATCHPAD, optional=True),
            MessagesPlaceholder(ULTIMATUM, optional=True),
        ]
    )


def ultimatum_messages() -> list[BaseMessage]:
    """An empty assistant turn followed by the request to stop using
    tools and give the final answer."""
    return [
        AIMessage(content=""),
        HumanMessage(content=FORCE_FINAL_ANSWER),
    ]
