# transfer_ai/__init__.py
"""
Transfer Concierge Package

Conversational assistant for airport and city transfers in one service area:
- Collects the itinerary over chat turns (LLM function calling)
- Searches the rates marketplace through a caching proxy
- Enriches suppliers with ratings, cashback and coupons
- Narrates a per-supplier comparison in the user's language
"""

__version__ = "1.0.0"

# Package structure:
# transfer_ai/
# ├── __init__.py           <- This file
# ├── main.py               <- FastAPI application entry
# ├── config.py             <- Settings and logging setup
# ├── errors.py             <- Exception hierarchy
# │
# ├── agents/
# │   ├── concierge.py      <- Chat turn orchestration
# │   ├── aggregation.py    <- Offers -> enrichment -> ranking -> narratives
# │   └── enrichment.py     <- Supplier ratings and promotions
# │
# ├── api/                  <- FastAPI Routers
# │   ├── chat.py           <- /api/process-message, /api/chat-history
# │   ├── transfers.py      <- /api/analyze-transfers
# │   └── audio.py          <- /api/transcribe-audio
# │
# ├── interfaces/           <- Clients and stores
# │   ├── rate_client.py    <- Rates proxy client, offer parsing
# │   ├── search_client.py  <- Web search, address checks
# │   ├── locations.py      <- Place name -> location id
# │   ├── session_store.py  <- Itinerary drafts
# │   └── conversation_store.py <- Chat sessions and messages
# │
# ├── llm/
# │   ├── client.py         <- OpenAI wrapper
# │   ├── prompts.py        <- Prompt templates and tools
# │   ├── extractor.py      <- Itinerary extraction
# │   └── narrator.py       <- Supplier narratives
# │
# ├── algorithms/
# │   └── offer_ranking.py  <- Price ranking and grouping
# │
# ├── schemas/
# │   └── transfer_schemas.py <- Draft and API models
# │
# ├── utils/
# │   └── language.py       <- Language detection
# │
# └── proxy/                <- Standalone rates proxy service
#     ├── app.py
#     ├── cache.py
#     └── rate_limit.py
