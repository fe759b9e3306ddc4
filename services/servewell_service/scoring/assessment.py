"""Spiritual gifts questionnaire scoring.

Each gift is rated through several 1-5 agreement statements. The mean rating
is rescaled to 0-100; gifts at or above ``GIFT_THRESHOLD`` become the
volunteer's recognized gifts, strongest first.
"""

from services.servewell_service.models import SpiritualGift
from services.servewell_service.schemas import (
    AssessmentResult,
    AssessmentSubmission,
    SpiritualGiftInfo,
)

GIFT_THRESHOLD = 60
MAX_PRIMARY_GIFTS = 5

# Submission fields copied onto the profile only when the volunteer sent them
_PASSTHROUGH_FIELDS = {
    "display_name",
    "email",
    "serving_style",
    "ministry_passions",
    "skills",
    "availability",
}


def gift_score(ratings: list[int]) -> int:
    mean = sum(ratings) / len(ratings)
    return round((mean - 1) / 4 * 100)


def assess_responses(submission: AssessmentSubmission) -> AssessmentResult:
    scores = {gift: gift_score(ratings) for gift, ratings in submission.responses.items()}

    ranked = sorted(
        (gift for gift, score in scores.items() if score >= GIFT_THRESHOLD),
        key=lambda gift: (-scores[gift], gift.value),
    )

    return AssessmentResult(
        spiritual_gifts=ranked[:MAX_PRIMARY_GIFTS],
        gift_scores=scores,
        **submission.model_dump(include=_PASSTHROUGH_FIELDS, exclude_unset=True),
    )


# (category, description) for every gift the questionnaire can recognize
GIFT_CATALOGUE: dict[SpiritualGift, tuple[str, str]] = {
    SpiritualGift.ADMINISTRATION: (
        "ministry",
        "Organizing, planning and coordinating ministry activities",
    ),
    SpiritualGift.APOSTLESHIP: (
        "leadership",
        "Starting new ministries and carrying the work into new places",
    ),
    SpiritualGift.DISCERNMENT: (
        "spiritual",
        "Distinguishing truth from error and sensing spiritual authenticity",
    ),
    SpiritualGift.EVANGELISM: (
        "spiritual",
        "Sharing the gospel effectively and leading others to faith",
    ),
    SpiritualGift.EXHORTATION: (
        "spiritual",
        "Encouraging and strengthening others in their faith journey",
    ),
    SpiritualGift.FAITH: (
        "spiritual",
        "Extraordinary trust in God to provide and to act",
    ),
    SpiritualGift.GIVING: (
        "ministry",
        "Contributing resources generously and joyfully for ministry",
    ),
    SpiritualGift.HELPS: (
        "ministry",
        "Supporting others so that their ministry can flourish",
    ),
    SpiritualGift.HOSPITALITY: (
        "ministry",
        "Welcoming people warmly so they feel at home",
    ),
    SpiritualGift.KNOWLEDGE: (
        "spiritual",
        "Studying deeply and bringing understanding to the church",
    ),
    SpiritualGift.LEADERSHIP: (
        "leadership",
        "Guiding and inspiring others toward shared ministry goals",
    ),
    SpiritualGift.MERCY: (
        "spiritual",
        "Showing compassion and care to those who are suffering",
    ),
    SpiritualGift.PROPHECY: (
        "spiritual",
        "Speaking truth boldly to build up and correct",
    ),
    SpiritualGift.SERVICE: (
        "ministry",
        "Meeting practical needs with joy, often behind the scenes",
    ),
    SpiritualGift.TEACHING: (
        "spiritual",
        "Explaining Scripture clearly so others understand and apply it",
    ),
    SpiritualGift.TONGUES: (
        "sign",
        "Praying and worshipping in a language not learned",
    ),
    SpiritualGift.INTERPRETATION: (
        "sign",
        "Making a message in tongues understood by the gathering",
    ),
    SpiritualGift.WISDOM: (
        "spiritual",
        "Applying knowledge practically and giving godly counsel",
    ),
    SpiritualGift.HEALING: (
        "sign",
        "Praying for and ministering to the sick",
    ),
    SpiritualGift.MIRACLES: (
        "sign",
        "Trusting God for works beyond natural explanation",
    ),
}


def gift_catalogue() -> list[SpiritualGiftInfo]:
    """Describe every gift, grouped by category then name."""
    entries = [
        SpiritualGiftInfo(
            gift=gift,
            name=gift.value.title(),
            category=category,
            description=description,
        )
        for gift, (category, description) in GIFT_CATALOGUE.items()
    ]
    return sorted(entries, key=lambda entry: (entry.category, entry.name))
