"""
Source Categorization and Event Classification Service

Maps raw Analytics dimension values onto the business vocabulary of the
dashboard:

- categorize_source(source, medium) assigns every (source, medium) pair to
  exactly one SourceCategory.
- classify_event(event_name) decides whether an event counts as a form
  submission lead, a phone call lead, or neither.

Categorization Rules (evaluated in order, first match wins):
1. source contains an LLM/AI assistant token            -> llmAI
2. source contains a listing/directory token             -> listings
3. medium is cpc / ppc / paid, or contains "paid"        -> paidSearch
4. medium is organic and source is a known search engine -> organicSearch
5. medium contains "social" or source is a social site   -> social
6. medium is referral                                    -> referral
7. source is (direct), or medium is (none) / direct      -> direct
8. anything else                                         -> other

List entries such as "chatgpt.com" match on the part before their first dot
("chatgpt"), so subdomains and bare names both hit. Both inputs are
lower-cased first. The order matters: "chatgpt.com / referral" is llmAI, not
referral, and "yelp.com / cpc" is listings, not paidSearch.

The curated lists are static configuration, not derived at runtime.
"""

from dataclasses import dataclass
from typing import Tuple

from pulse.models.enums import SourceCategory


# =============================================================================
# Curated Source Lists
# =============================================================================

# Match tokens (the part before the first dot) must never equal or fall inside
# a search engine or social platform name, otherwise "google / organic" or
# "facebook / social" would be swallowed by these earlier rules. Hostnames
# like "m.yelp.com", "g.page", "google.com/maps", "google.com/local", "facebook.com/biz" and
# "bing.com/chat" are left out for that reason; "yelp", "maps.google.com" and
# "business.google.com" still cover them.
LLM_SOURCES: Tuple[str, ...] = (
    'chatgpt.com', 'chat.openai.com', 'openai.com',
    'perplexity.ai', 'perplexity',
    'claude.ai', 'anthropic.com',
    'bard.google.com', 'gemini.google.com',
    'copilot.microsoft.com',
    'you.com', 'phind.com', 'poe.com',
)

LISTING_SOURCES: Tuple[str, ...] = (
    'yelp.com', 'yelp',
    'maps.google.com', 'business.google.com',
    'clutch.co', 'expertise.com', 'thumbtack.com',
    'homeadvisor.com', 'angieslist.com', 'angi.com',
    'bbb.org', 'yellowpages.com', 'manta.com',
    'nextdoor.com',
    'avvo.com', 'justia.com', 'lawyers.com',
    'healthgrades.com', 'zocdoc.com', 'vitals.com',
    'houzz.com', 'buildzoom.com',
    'cpafee.com', 'designrush.com', 'upcity.com',
)

ORGANIC_SEARCH_ENGINES: Tuple[str, ...] = (
    'google', 'bing', 'yahoo', 'duckduckgo', 'baidu',
    'yandex', 'ecosia', 'brave', 'startpage',
)

# Reference list of ad platforms. Paid traffic is detected from the medium
# alone, so this list is not consulted by categorize_source.
PAID_SEARCH_SOURCES: Tuple[str, ...] = (
    'google', 'bing', 'yahoo', 'facebook', 'instagram',
    'linkedin', 'twitter', 'tiktok', 'pinterest',
)

SOCIAL_PLATFORMS: Tuple[str, ...] = (
    'facebook', 'instagram', 'twitter', 'linkedin', 'tiktok', 'pinterest',
)

PAID_MEDIUMS: Tuple[str, ...] = ('cpc', 'ppc', 'paid')

DIRECT_MEDIUMS: Tuple[str, ...] = ('(none)', 'direct')


def _match_tokens(entries: Tuple[str, ...]) -> Tuple[str, ...]:
    """Substring before the first dot of each entry ("maps.google.com" -> "maps")."""
    return tuple(entry.split('.')[0] for entry in entries)


LLM_MATCH_TOKENS: Tuple[str, ...] = _match_tokens(LLM_SOURCES)
LISTING_MATCH_TOKENS: Tuple[str, ...] = _match_tokens(LISTING_SOURCES)


# =============================================================================
# Curated Event Lists
# =============================================================================

FORM_EVENT_NAMES: Tuple[str, ...] = (
    'form_submit', 'generate_lead', 'contact_form',
    'form_submission', 'submit_form', 'lead_form',
)

PHONE_EVENT_NAMES: Tuple[str, ...] = (
    'phone_click', 'click_to_call', 'tel_click',
    'phone_call', 'call_click', 'phone',
)


# =============================================================================
# Source Categorizer
# =============================================================================


def categorize_source(source: str, medium: str) -> SourceCategory:
    """
    Assign a (source, medium) pair to its marketing category.

    Total and deterministic: every input maps to exactly one category.

    Args:
        source: sessionSource dimension value (e.g. "google", "chatgpt.com", "(direct)")
        medium: sessionMedium dimension value (e.g. "organic", "cpc", "(none)")

    Returns:
        SourceCategory for the pair.

    Example:
        >>> categorize_source("chatgpt.com", "referral")
        <SourceCategory.LLM_AI: 'llmAI'>
        >>> categorize_source("google", "organic")
        <SourceCategory.ORGANIC_SEARCH: 'organicSearch'>
    """
    source_lower = (source or '').lower()
    medium_lower = (medium or '').lower()

    if any(token in source_lower for token in LLM_MATCH_TOKENS):
        return SourceCategory.LLM_AI

    if any(token in source_lower for token in LISTING_MATCH_TOKENS):
        return SourceCategory.LISTINGS

    if medium_lower in PAID_MEDIUMS or 'paid' in medium_lower:
        return SourceCategory.PAID_SEARCH

    if medium_lower == 'organic' and any(engine in source_lower for engine in ORGANIC_SEARCH_ENGINES):
        return SourceCategory.ORGANIC_SEARCH

    if 'social' in medium_lower or any(platform in source_lower for platform in SOCIAL_PLATFORMS):
        return SourceCategory.SOCIAL

    if medium_lower == 'referral':
        return SourceCategory.REFERRAL

    if source_lower == '(direct)' or medium_lower in DIRECT_MEDIUMS:
        return SourceCategory.DIRECT

    return SourceCategory.OTHER


# =============================================================================
# Event Classifier
# =============================================================================


@dataclass(frozen=True)
class EventClassification:
    """Lead bucket for one event name. At most one flag is set."""
    is_form: bool = False
    is_phone: bool = False


def classify_event(event_name: str) -> EventClassification:
    """
    Classify an event name into the form or phone lead bucket.

    Form names are checked first, so an event matching both lists counts as a
    form submission. Events matching neither are ignored for lead counting.

    Args:
        event_name: GA4 eventName dimension value.

    Returns:
        EventClassification with is_form / is_phone flags.
    """
    name = (event_name or '').lower()

    if any(form_event in name for form_event in FORM_EVENT_NAMES):
        return EventClassification(is_form=True)

    if any(phone_event in name for phone_event in PHONE_EVENT_NAMES):
        return EventClassification(is_phone=True)

    return EventClassification()
