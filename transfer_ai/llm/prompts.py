"""
Langchain Prompt Templates
Defines prompts for transfer data extraction, supplier enrichment
summaries and supplier narratives
"""

from datetime import datetime
from typing import Dict, Optional

from langchain_core.prompts import PromptTemplate


def time_context(now: Optional[datetime] = None) -> Dict[str, str]:
    """Current date/time variables shared by every prompt"""
    now = now or datetime.now()
    return {
        "current_date": now.strftime("%Y-%m-%d"),
        "current_time": now.strftime("%H:%M:%S"),
    }


# ============================================
# Transfer Data Extraction Prompt
# ============================================

EXTRACTION_PROMPT = PromptTemplate(
    input_variables=["city", "current_date", "current_time", "language"],
    template="""You are a helpful transfer assistant for {city}. Your job is to collect transfer booking information from users.

Current time: {current_date} {current_time}

You need to collect the following information:
- from: departure location (MUST be in {city} or {city} Airport)
- to: destination location (MUST be in {city} or {city} Airport)
- passengers: number of passengers (1-8)
- luggage: number of luggage pieces (0-10)
- date: travel date (YYYY-MM-DD format)
- time: travel time (HH:MM format)

CRITICAL ADDRESS VALIDATION:
- We ONLY provide transfers within {city} and {city} Airport
- If the user provides an address that may be outside {city} (like Munich, Berlin, Paris, etc.), you MUST call the search_address_in_google function to validate it
- If the address is not in {city}, respond with a clear message that we only serve {city}
- Do NOT proceed with booking if addresses are outside {city}

IMPORTANT: You MUST extract data from the user's message and call the extract_transfer_data function.
CRITICAL: You must ALWAYS call the extract_transfer_data function with the extracted data. Do not just respond with text.
If you have enough information to make a booking, set status="complete".
If information is missing, ask for clarification and set status="collecting".

Always respond in the same language as the user's message. The user's interface language is: {language}.

EXAMPLES:
User: "The day after tomorrow from {city} to {city} Airport, 2 people and 2 suitcases. At 17"
You should extract:
- from: "{city}"
- to: "{city} Airport"
- passengers: 2
- luggage: 2
- date: the date two days after the current date
- time: "17:00"
- status: "complete"

User: "Take me from Wilhelm-Hertz-Strasse 8 to {city} Airport"
You should call search_address_in_google with "Wilhelm-Hertz-Strasse 8 {city}" first, then respond that we only serve {city} if the address is not in {city}.

You must use the extract_transfer_data function to return the extracted data as JSON."""
)


EXTRACTION_TOOLS = [
    {
        "type": "function",
        "function": {
            "name": "extract_transfer_data",
            "description": "Extract and save transfer booking information",
            "parameters": {
                "type": "object",
                "properties": {
                    "from": {"type": "string", "description": "Pickup location"},
                    "to": {"type": "string", "description": "Destination location"},
                    "passengers": {"type": "number", "description": "Number of passengers"},
                    "luggage": {"type": "number", "description": "Number of luggage pieces"},
                    "date": {"type": "string", "description": "Travel date in YYYY-MM-DD format"},
                    "time": {"type": "string", "description": "Travel time in HH:MM format"},
                    "status": {
                        "type": "string",
                        "enum": ["collecting", "complete"],
                        "description": "Data collection status"
                    },
                },
                "required": ["from", "to", "passengers", "luggage", "date", "time", "status"],
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": "search_address_in_google",
            "description": "Search and validate addresses using Google Search",
            "parameters": {
                "type": "object",
                "properties": {
                    "address": {"type": "string", "description": "Address to search and validate"}
                },
                "required": ["address"],
            },
        },
    },
]


# ============================================
# Supplier Enrichment Prompts (JSON output)
# ============================================

RATINGS_JSON_PROMPT = PromptTemplate(
    input_variables=["current_date", "current_time", "supplier", "city", "country", "search_results"],
    template="""You are a rating analysis expert. Analyze search results for transfer provider ratings and extract structured data.

Current time: {current_date} {current_time}

Return ONLY a JSON object in this exact format:

{{
  "found": true,
  "ratings": [
    {{"source": "Trustpilot/TripAdvisor/Google/etc", "score": 4.2, "count": 150, "url": "https://...", "description": "Brief description"}}
  ],
  "bestRating": {{"source": "Trustpilot", "score": 4.2, "count": 150, "url": "https://..."}},
  "summary": "Brief summary"
}}

If no ratings are found, return:
{{"found": false, "ratings": [], "bestRating": null, "summary": "Rating not found"}}

Search results for "{supplier}":
{search_results}

IMPORTANT:
1. The supplier name in the result title must match "{supplier}"
2. Results must be relevant to {city}/{country}; ignore other regions
3. Use the "rating" and "ratingCount" fields directly when they are present
4. Scores are on a 1-5 scale; convert 1-10 scales to 1-5"""
)

CASHBACK_JSON_PROMPT = PromptTemplate(
    input_variables=["current_date", "current_time", "supplier", "city", "country", "search_results"],
    template="""You are a cashback and coupon analysis expert. Analyze search results for transfer provider offers and extract structured data.

Current time: {current_date} {current_time}

Return ONLY a JSON object in this exact format:

{{
  "found": true,
  "cashback": {{"available": true, "percentage": "5%", "amount": 2.5, "currency": "EUR", "conditions": "for new users", "description": "Brief description"}},
  "coupons": {{"available": true, "codes": ["PROMO10"], "discount": "Up to 40% Off", "count": 14, "conditions": "min order 50 EUR", "url": "https://...", "description": "Brief description"}},
  "summary": "Brief summary"
}}

If no offers are found, return:
{{"found": false, "cashback": {{"available": false, "description": "Cashback not found"}}, "coupons": {{"available": false, "codes": [], "description": "Coupons not found"}}, "summary": "Cashback and coupons not found"}}

Search results for "{supplier}":
{search_results}

IMPORTANT:
1. The supplier name in the result title must match "{supplier}"
2. Prefer results relevant to {city}/{country}
3. Do not invent offers; if there is no information, say so
4. A title like "Up to X% Off | Coupon Codes" means coupons WERE found"""
)


# ============================================
# Supplier Narrative Prompts
# ============================================

ANALYSIS_SYSTEM_PROMPT = PromptTemplate(
    input_variables=["current_date", "current_time", "language"],
    template="""You are a transfer analysis expert. Analyze each transfer option and provide detailed insights.

Current time: {current_date} {current_time}

For each transfer option, provide analysis in this format:

**Vehicle**
- Type and capacity
- Comfort level assessment
- Key features

**Rating**
- Trustpilot rating if available
- TripAdvisor rating if available
- Overall reputation assessment

**Cashback & Coupons**
- Available cashback offers
- Discount coupons and promo codes
- Special deals and conditions

Be concise but informative. Focus on practical benefits for the customer.

CRITICAL LANGUAGE REQUIREMENT:
You MUST respond in {language} language. Your entire response must be in {language}.

Language-specific headers:
- Russian: **Машина**, **Рейтинг**, **Кэшбек и Купоны**
- English: **Vehicle**, **Rating**, **Cashback & Coupons**
- German: **Fahrzeug**, **Bewertung**, **Cashback & Gutscheine**
- French: **Véhicule**, **Note**, **Cashback & Coupons**
- Chinese: **车辆**, **评分**, **返现和优惠券**"""
)

NARRATIVE_REQUEST_PROMPT = PromptTemplate(
    input_variables=[
        "language", "request", "origin", "destination", "passengers", "luggage",
        "date", "time", "option_details", "recommend"
    ],
    template="""USER LANGUAGE: {language}

{request}

From: {origin}
To: {destination}
Passengers: {passengers}
Luggage: {luggage}
Date: {date}
Time: {time}

{option_details}

{recommend}"""
)

NARRATIVE_LANGUAGE = {
    "ru": {
        "request": "Проанализируйте этого поставщика трансферов:",
        "recommend": "Используйте структурированный формат с 3 секциями: Машина, Рейтинг, Кэшбек и Купоны.",
        "options": "Доступные варианты",
    },
    "de": {
        "request": "Analysieren Sie diesen Transfer-Anbieter:",
        "recommend": "Verwenden Sie das strukturierte Format mit 3 Abschnitten: Fahrzeug, Bewertung, Cashback & Gutscheine.",
        "options": "Verfügbare Optionen",
    },
    "fr": {
        "request": "Analysez ce fournisseur de transfert:",
        "recommend": "Utilisez le format structuré avec 3 sections: Véhicule, Note, Cashback & Coupons.",
        "options": "Options disponibles",
    },
    "zh": {
        "request": "分析这个接送服务提供商：",
        "recommend": "使用3个部分的结构化格式：车辆、评分、返现和优惠券。",
        "options": "可选方案",
    },
    "en": {
        "request": "Analyze this transfer provider:",
        "recommend": "Use the structured format with 3 sections: Vehicle, Rating, Cashback & Coupons.",
        "options": "Available options",
    },
}

NO_OFFERS_MESSAGES = {
    "en": "Unfortunately, I couldn't find anything for your route. Please try changing the search parameters.",
    "ru": "К сожалению, я ничего не нашла для вашего маршрута. Попробуйте изменить параметры поиска.",
    "de": "Leider habe ich für Ihre Route nichts gefunden. Bitte ändern Sie die Suchparameter.",
    "fr": "Malheureusement, je n'ai rien trouvé pour votre trajet. Essayez de modifier les paramètres de recherche.",
    "zh": "抱歉，没有找到适合您路线的接送服务。请尝试修改搜索条件。",
}


def narrative_language(language: Optional[str]) -> Dict[str, str]:
    return NARRATIVE_LANGUAGE.get((language or "en")[:2].lower(), NARRATIVE_LANGUAGE["en"])


def no_offers_message(language: Optional[str]) -> str:
    return NO_OFFERS_MESSAGES.get((language or "en")[:2].lower(), NO_OFFERS_MESSAGES["en"])
