"""Services for the Support Chat backend."""
from .conversation_store import (
    ConversationStore,
    SupabaseConversationStore,
    InMemoryConversationStore,
    StorageError,
    create_conversation_store,
)
from .reply_generator import (
    ReplyGenerator,
    LLMError,
    ReplyGenerationError,
    UpstreamAuthError,
    UpstreamRateLimitError,
    UpstreamTimeoutError,
    EmptyGenerationError,
    UpstreamError,
)

__all__ = ['ConversationStore', 'SupabaseConversationStore', 'InMemoryConversationStore', 'StorageError', 'create_conversation_store', 'ReplyGenerator', 'LLMError', 'ReplyGenerationError', 'UpstreamAuthError', 'UpstreamRateLimitError', 'UpstreamTimeoutError', 'EmptyGenerationError', 'UpstreamError']
