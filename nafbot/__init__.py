"""nafbot

FAQ-first assistant for drug-regulation questions. Answers come from an exact
FAQ match, then a relevance-scored FAQ match, then a local Ollama model.
"""

__version__ = "0.1.0"
