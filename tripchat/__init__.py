# tripchat/__init__.py
"""
Travel Chat Service Package

A conversational travel assistant that turns free-text requests into
searches:
- Intent classification (OpenAI or regex patterns)
- Slot filling with one follow-up question at a time
- Context that carries across turns of a chat
- Flight and hotel search (Amadeus), destination info (Tavily / Brave)
"""

__version__ = "1.0.0"

# Package structure:
# tripchat/
# ├── __init__.py           <- This file
# ├── main.py               <- FastAPI application entry
# ├── config.py             <- Configuration settings
# ├── errors.py             <- Error types
# │
# ├── agents/
# │   └── chat_agent.py     <- LangGraph classify -> handler graph
# │
# ├── api/
# │   └── chat.py           <- /api/chat
# │
# ├── interfaces/           <- External services and stores
# │   ├── amadeus_client.py <- Flight + hotel search
# │   ├── web_search.py     <- Tavily / Brave
# │   ├── context_store.py  <- Per-chat search context
# │   └── conversation_store.py <- Message history
# │
# ├── llm/
# │   ├── classifier.py     <- classify(message, history, context)
# │   ├── intent_parser.py  <- Regex classifier + param extraction
# │   ├── llm_classifier.py <- OpenAI classifier
# │   ├── slot_filling.py   <- Required params, questions, merging
# │   ├── responder.py      <- Itinerary / small-talk generation
# │   └── prompts.py        <- Prompt templates
# │
# ├── schemas/
# │   └── chat_schemas.py   <- Pydantic models
# │
# └── utils/
#     └── travel_helpers.py <- IATA codes, formatting, result cards
