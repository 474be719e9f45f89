"""
Session core: input handling, streaming and the model provider.
"""
