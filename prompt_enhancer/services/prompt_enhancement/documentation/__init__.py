from .retriever import DocumentationRetriever, DocumentationResult, extract_topic, estimate_tokens

__all__ = ["DocumentationRetriever", "DocumentationResult", "extract_topic", "estimate_tokens"]
