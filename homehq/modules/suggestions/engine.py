"""
Rule-based task suggestions.

An event title is matched against a fixed keyword table; every rule with a
matching keyword yields one suggestion whose due date is the event start
shifted by the rule's offset. The four legacy rules fall due after the
event, the templates before it. Nothing here touches the database: role and
attendance rules read a SuggestionContext prepared by the caller.
"""

import re
from datetime import datetime, timedelta
from typing import List, Optional, Tuple, Union

from pydantic import BaseModel

from homehq.core.validation import format_iso_datetime, parse_iso_datetime
from homehq.modules.suggestions.schemas import TaskSuggestion


class SuggestionRule(BaseModel):
    suggestion_id: str
    keywords: Tuple[str, ...]
    title: str
    description: str
    # Days from the event start; negative means before the event
    offset_days: int
    admin_only: bool = False
    # Only when a child of the family stays home while an adult attends
    needs_childcare: bool = False


class SuggestionContext(BaseModel):
    """Who asks and who attends, for the role and childcare rules."""

    user_role: str = "member"
    family_child_ids: Tuple[str, ...] = ()
    attending_child_ids: Tuple[str, ...] = ()
    adult_attending: bool = False

    @property
    def is_admin(self) -> bool:
        return self.user_role == "admin"

    @property
    def needs_childcare(self) -> bool:
        children_at_home = [c for c in self.family_child_ids if c not in self.attending_child_ids]
        return bool(children_at_home) and self.adult_attending


BIRTHDAY_KEYWORDS = ("urodziny", "birthday", "bday", "b-day", "urodzinki")
SCHOOL_TRIP_KEYWORDS = ("wycieczka", "school trip", "field trip", "wycieczka szkolna")
SCHOOL_START_KEYWORDS = ("początek roku", "rozpoczęcie roku", "first day", "back to school", "szkoła")

LEGACY_RULES: Tuple[SuggestionRule, ...] = (
    SuggestionRule(
        suggestion_id="birthday",
        keywords=("birthday", "bday", "b-day"),
        title="Buy a gift",
        description="Purchase birthday present",
        offset_days=7,
    ),
    SuggestionRule(
        suggestion_id="health",
        keywords=("doctor", "dentist", "clinic", "checkup"),
        title="Prepare medical documents",
        description="Gather insurance cards and medical history",
        offset_days=1,
    ),
    SuggestionRule(
        suggestion_id="travel",
        keywords=("flight", "trip", "vacation", "airport"),
        title="Pack bags",
        description="Prepare luggage and travel essentials",
        offset_days=2,
    ),
    SuggestionRule(
        suggestion_id="outing",
        keywords=("cinema", "date", "dinner", "movie"),
        title="Book a babysitter",
        description="Arrange childcare for the event",
        offset_days=3,
    ),
)

TEMPLATE_RULES: Tuple[SuggestionRule, ...] = (
    # Birthdays
    SuggestionRule(
        suggestion_id="birthday_invitations",
        keywords=BIRTHDAY_KEYWORDS,
        title="Wysłać zaproszenia / Send invitations",
        description="Prepare and send the birthday invitations",
        offset_days=-14,
    ),
    SuggestionRule(
        suggestion_id="birthday_cake",
        keywords=BIRTHDAY_KEYWORDS,
        title="Zamówić tort / Order cake",
        description="Order the birthday cake",
        offset_days=-7,
    ),
    SuggestionRule(
        suggestion_id="birthday_gifts",
        keywords=BIRTHDAY_KEYWORDS,
        title="Kupić prezenty i dekoracje / Buy gifts",
        description="Purchase birthday presents and decorations",
        offset_days=-14,
    ),
    # School
    SuggestionRule(
        suggestion_id="parent_teacher_meeting",
        keywords=("wywiadówka", "zebranie", "spotkanie z nauczycielem", "parent-teacher", "school meeting"),
        title="Przejrzeć zeszyty dziecka / Review notebooks",
        description="Go through the child's notebooks and homework before the meeting",
        offset_days=-1,
    ),
    SuggestionRule(
        suggestion_id="school_trip_food",
        keywords=SCHOOL_TRIP_KEYWORDS,
        title="Przygotować drugie śniadanie / Pack lunch",
        description="Pack a lunch and a drink for the trip",
        offset_days=-1,
    ),
    SuggestionRule(
        suggestion_id="school_trip_clothes",
        keywords=SCHOOL_TRIP_KEYWORDS,
        title="Spakować ubrania / Pack clothes",
        description="Check the forecast and pack suitable clothes",
        offset_days=-2,
    ),
    SuggestionRule(
        suggestion_id="end_of_school_year_gift",
        keywords=("koniec roku", "zakończenie roku", "end of school year", "last day of school"),
        title="Prezent dla nauczyciela / Teacher gift",
        description="Buy a present for the teacher for the end of the year",
        offset_days=-7,
    ),
    SuggestionRule(
        suggestion_id="school_year_start_supplies",
        keywords=SCHOOL_START_KEYWORDS,
        title="Kupić przybory szkolne / Buy school supplies",
        description="Buy everything on the school supplies list",
        offset_days=-14,
    ),
    SuggestionRule(
        suggestion_id="school_year_start_books",
        keywords=SCHOOL_START_KEYWORDS,
        title="Podpisać podręczniki / Label textbooks",
        description="Put names on all textbooks and notebooks",
        offset_days=-7,
    ),
    SuggestionRule(
        suggestion_id="semester_end_celebration",
        keywords=("świadectwo", "koniec semestru", "report card", "semester end", "półrocze"),
        title="Zaplanować świętowanie / Plan celebration",
        description="Plan a family celebration for the end of the semester",
        offset_days=-1,
    ),
    SuggestionRule(
        suggestion_id="school_performance",
        keywords=("przedstawienie", "akademia", "jasełka", "performance", "school play", "recital"),
        title="Przygotować strój / Prepare costume",
        description="Get the child's costume ready for the performance",
        offset_days=-7,
    ),
    SuggestionRule(
        suggestion_id="school_break_activities",
        keywords=("ferie", "wakacje", "summer break", "winter break", "holiday", "półkolonie"),
        title="Zapisać na zajęcia / Register for activities",
        description="Sign the children up for day camps or holiday activities",
        offset_days=-60,
    ),
    # Date night and outings
    SuggestionRule(
        suggestion_id="date_night_babysitter",
        keywords=("cinema", "date", "dinner", "movie", "restaurant", "kino", "randka", "wyjście", "wyjscie",
                  "kolacja"),
        title="Umówić opiekunkę / Book babysitter",
        description="Arrange childcare for the event",
        offset_days=-3,
        admin_only=True,
        needs_childcare=True,
    ),
    SuggestionRule(
        suggestion_id="date_night_reservation",
        keywords=("randka", "kolacja", "dinner", "date night", "restaurant", "restauracja"),
        title="Zarezerwować stolik / Reserve table",
        description="Book a table at the restaurant",
        offset_days=-3,
    ),
    # Health
    SuggestionRule(
        suggestion_id="health_documents",
        keywords=("doctor", "dentist", "clinic", "checkup", "medical", "appointment", "lekarz", "dentysta",
                  "pediatra", "wizyta"),
        title="Przygotować dokumenty / Prepare documents",
        description="Gather insurance cards, vaccination records and medical history",
        offset_days=-1,
    ),
    # Travel
    SuggestionRule(
        suggestion_id="travel_pack",
        keywords=("flight", "trip", "vacation", "holiday", "travel", "airport", "lot", "wyjazd", "urlop"),
        title="Spakować walizki / Pack bags",
        description="Prepare luggage and travel essentials",
        offset_days=-2,
    ),
    SuggestionRule(
        suggestion_id="travel_documents",
        keywords=("wakacje", "vacation", "holiday", "trip", "urlop", "wyjazd", "family vacation"),
        title="Sprawdzić dokumenty / Check documents",
        description="Check that the children's ID cards and passports are still valid",
        offset_days=-30,
    ),
    # Holidays
    SuggestionRule(
        suggestion_id="christmas_gifts",
        keywords=("wigilia", "boże narodzenie", "christmas", "święta", "xmas", "gwiazdka"),
        title="Kupić prezenty / Buy presents",
        description="Buy Christmas presents for the children",
        offset_days=-30,
    ),
    SuggestionRule(
        suggestion_id="christmas_outfits",
        keywords=("wigilia", "boże narodzenie", "christmas", "święta", "choinka"),
        title="Przygotować stroje / Prepare outfits",
        description="Get the festive outfits ready for Christmas Eve",
        offset_days=-7,
    ),
    # Costume parties
    SuggestionRule(
        suggestion_id="costume_party",
        keywords=("bal", "przebieraniec", "halloween", "costume", "przebranie", "kostium", "andrzejki",
                  "karnawał"),
        title="Przygotować kostium / Prepare costume",
        description="Make or buy a costume for the party",
        offset_days=-14,
    ),
    # Sports and activities
    SuggestionRule(
        suggestion_id="swimming_bag",
        keywords=("basen", "swimming", "pool", "pływalnia", "zajęcia sportowe", "sport", "trening"),
        title="Spakować torbę / Pack sports bag",
        description="Pack the bag with swimsuit, towel and toiletries",
        offset_days=-1,
    ),
)

SUGGESTION_RULES: Tuple[SuggestionRule, ...] = LEGACY_RULES + TEMPLATE_RULES

LEGACY_SUGGESTION_IDS = tuple(rule.suggestion_id for rule in LEGACY_RULES)
SUGGESTION_IDS = tuple(rule.suggestion_id for rule in SUGGESTION_RULES)


def normalize_text(text: str) -> str:
    return re.sub(r"\s+", " ", text.lower().strip())


def matches_keywords(title: str, keywords: Tuple[str, ...]) -> bool:
    normalized = normalize_text(title)
    return any(keyword.lower() in normalized for keyword in keywords)


def rule_applies(rule: SuggestionRule, title: str, context: SuggestionContext) -> bool:
    if not matches_keywords(title, rule.keywords):
        return False
    # The childcare check replaces the role check for the babysitter rule
    if rule.needs_childcare:
        return context.needs_childcare
    if rule.admin_only:
        return context.is_admin
    return True


def suggest(title: str, start_time: Union[str, datetime],
            context: Optional[SuggestionContext] = None) -> List[TaskSuggestion]:
    """Suggestions for an event, in rule-table order; ``[]`` when nothing matches.

    Without a context the caller is treated as a member with no known
    attendees, so the role and childcare rules never fire.
    """
    if not title:
        return []
    context = context or SuggestionContext()
    start = parse_iso_datetime(start_time) if isinstance(start_time, str) else start_time
    suggestions = []
    for rule in SUGGESTION_RULES:
        if rule_applies(rule, title, context):
            suggestions.append(TaskSuggestion(
                suggestion_id=rule.suggestion_id,
                title=rule.title,
                due_date=format_iso_datetime(start + timedelta(days=rule.offset_days)),
                description=rule.description,
            ))
    return suggestions
