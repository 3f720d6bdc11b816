"""Question-answering flow: keyword extraction, Wikipedia search, streamed answer."""

from wiki_chat.flows.orchestrator import QueryOrchestrator

__all__ = ["QueryOrchestrator"]
