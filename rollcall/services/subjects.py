"""Subjects offered in the form and the tabs that filter the attendance table."""
import re
from dataclasses import dataclass, field

# (form value, label). The form value doubles as the record's ``text``.
SUBJECTS: list[tuple[str, str]] = [
    ("Maths", "Maths"),
    ("Data Structure", "Data Structure"),
    ("Sensors & Transducers", "Sensors & Transducers"),
    ("Python", "Python"),
    ("TOC", "Theory of Computation"),
]

ALL_SUBJECTS_TAB = "allsubjects"


def subject_class(text: str) -> str:
    """CSS-ish class of a subject: whitespace stripped, lowercased ("Data Structure" -> "datastructure")."""
    return re.sub(r"\s", "", text or "").lower()


SUBJECT_CLASSES: frozenset[str] = frozenset(subject_class(value) for value, _ in SUBJECTS)

# tab id -> subject classes shown while the tab is active
SUBJECT_TABS: dict[str, frozenset[str]] = {
    ALL_SUBJECTS_TAB: SUBJECT_CLASSES,
    **{subject_class(value): frozenset({subject_class(value)}) for value, _ in SUBJECTS},
}

TAB_LABELS: dict[str, str] = {
    ALL_SUBJECTS_TAB: "All",
    **{subject_class(value): label for value, label in SUBJECTS},
}


@dataclass(frozen=True)
class TabSelection:
    active: str
    tabs: dict[str, bool] = field(default_factory=dict)  # tab id -> is active
    display: dict[str, str] = field(default_factory=dict)  # subject class -> "block" | "none"

    @property
    def shown(self) -> list[str]:
        return sorted(cls for cls, state in self.display.items() if state == "block")

    @property
    def hidden(self) -> list[str]:
        return sorted(cls for cls, state in self.display.items() if state == "none")


def select_tab(tab_id: str, tabs: dict[str, frozenset[str]] = SUBJECT_TABS) -> TabSelection:
    """Activate one tab; every other tab goes inactive and only its classes stay shown.

    Raises KeyError for an unknown tab.
    """
    shown = tabs[tab_id]
    every_class = frozenset().union(*tabs.values())
    return TabSelection(
        active=tab_id,
        tabs={tab: tab == tab_id for tab in tabs},
        display={cls: "block" if cls in shown else "none" for cls in sorted(every_class)},
    )
