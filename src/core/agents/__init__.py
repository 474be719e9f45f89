"""
LangGraph agents backing the model provider.
"""
