"""Configuration management for the Support Chat backend."""
import os
import logging
from dotenv import load_dotenv

from logger import setup_logging

# Load environment variables
load_dotenv()

# API Keys
GROQ_API_KEY = os.getenv("GROQ_API_KEY")
SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_KEY = os.getenv("SUPABASE_KEY")

# Server Configuration
PORT = int(os.getenv("PORT", "4000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = os.getenv("LOG_FORMAT", "text")  # "text" or "json"

# CORS Configuration
CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*").split(",")

# Model Configuration
GROQ_MODEL = os.getenv("GROQ_MODEL", "llama-3.1-8b-instant")
GENERATION_TEMPERATURE = 0.7

# Conversation Storage
CONVERSATION_BACKEND = os.getenv("CONVERSATION_BACKEND", "supabase")  # "supabase" or "memory"
CONVERSATION_TABLE = os.getenv("CONVERSATION_TABLE", "chat_messages")
HISTORY_CONTEXT_TURNS = 10  # turns sent to the model as context

# Request limits
MAX_SESSION_ID_LENGTH = 200
MAX_MESSAGE_LENGTH = 5000

# Logging Configuration
if LOG_FORMAT == "json":
    setup_logging(LOG_LEVEL)
else:
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
