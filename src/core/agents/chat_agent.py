from typing import TYPE_CHECKING, Annotated, Optional, TypedDict

from langchain.chat_models import init_chat_model
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import BaseMessage, SystemMessage
from langgraph.graph import END, START, StateGraph
from langgraph.graph.message import add_messages

if TYPE_CHECKING:
    from core.configuration import Configuration


SYSTEM_PROMPT = """You are a helpful assistant running inside a terminal chat client.
Answer in plain text: the terminal does not render Markdown, so avoid headings, tables and emphasis markers.
Keep answers concise unless the user asks for detail.
"""


class AgentState(TypedDict):
    messages: Annotated[list[BaseMessage], add_messages]


def build_llm(configuration: "Configuration") -> BaseChatModel:
    return init_chat_model(
        configuration.model_identifier,
        model_provider=configuration.model_provider,
        api_key=configuration.api_key,
    )


def chatbot_factory(llm: BaseChatModel, system_prompt: str):
    async def chatbot(state: AgentState):
        msgs = [SystemMessage(system_prompt), *state["messages"]]
        ai_msg = await llm.ainvoke(msgs)
        return {'messages': [ai_msg]}
    return chatbot


def build_agent(configuration: "Configuration", llm: Optional[BaseChatModel] = None):
    """
    Single-node graph: the chat model answers once, no tools.

    The conversation lives in the session transcript and is sent in full on
    every call, so the graph keeps no checkpointer.
    """
    llm = llm or build_llm(configuration)
    chatbot = chatbot_factory(llm, configuration.system_prompt)

    graph_builder = StateGraph(AgentState)
    graph_builder.add_node('chatbot', chatbot)
    graph_builder.add_edge(START, 'chatbot')
    graph_builder.add_edge('chatbot', END)

    return graph_builder.compile(name="chat_agent")
