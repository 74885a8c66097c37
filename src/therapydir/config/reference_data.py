"""Default reference data loaded by the ``seed`` command."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class CategorySeed:
    name: str
    slug: str
    synonyms: tuple[str, ...] = ()
    keywords: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class CitySeed:
    name: str
    state: str
    neighborhoods: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ReferenceData:
    categories: tuple[CategorySeed, ...] = field(default_factory=tuple)
    cities: tuple[CitySeed, ...] = field(default_factory=tuple)


DEFAULT_CATEGORIES: tuple[CategorySeed, ...] = (
    CategorySeed(
        "Cognitive Behavioral Therapy",
        "cbt-therapy",
        synonyms=("cbt", "cognitive therapy", "behavioral therapy"),
    ),
    CategorySeed(
        "EMDR Therapy",
        "emdr-therapy",
        synonyms=("emdr", "eye movement desensitization"),
    ),
    CategorySeed(
        "Couples Therapy",
        "couples-therapy",
        synonyms=("marriage counseling", "relationship therapy", "couples counseling"),
        keywords=("marriage", "couple", "relationship", "marital", "divorce"),
    ),
    CategorySeed(
        "Family Therapy",
        "family-therapy",
        synonyms=("family counseling", "systemic therapy"),
        keywords=("family", "parenting", "child", "adolescent", "teen", "youth"),
    ),
    CategorySeed(
        "Anxiety Therapy",
        "anxiety-therapy",
        synonyms=("anxiety treatment", "anxiety counseling", "gad therapy"),
    ),
    CategorySeed(
        "Depression Therapy",
        "depression-therapy",
        synonyms=("depression treatment", "depression counseling"),
    ),
    CategorySeed(
        "Trauma Therapy",
        "trauma-therapy",
        synonyms=("trauma treatment", "ptsd therapy", "trauma counseling"),
        keywords=("trauma", "ptsd", "emdr", "abuse"),
    ),
    CategorySeed(
        "Child Therapy",
        "child-therapy",
        synonyms=("child counseling", "play therapy", "pediatric therapy"),
        keywords=("child", "adolescent", "teen", "youth", "pediatric", "play therapy"),
    ),
    CategorySeed(
        "Teen Therapy",
        "teen-therapy",
        synonyms=("adolescent therapy", "teen counseling"),
    ),
    CategorySeed(
        "Group Therapy",
        "group-therapy",
        synonyms=("group counseling", "support groups"),
    ),
    CategorySeed(
        "Addiction Therapy",
        "addiction-therapy",
        synonyms=("substance abuse therapy", "addiction counseling", "rehab therapy"),
        keywords=("addiction", "substance", "alcohol", "drug", "rehab", "recovery", "sobriety"),
    ),
    CategorySeed(
        "Grief Therapy",
        "grief-therapy",
        synonyms=("grief counseling", "bereavement therapy", "loss counseling"),
        keywords=("grief", "loss", "bereavement"),
    ),
    CategorySeed(
        "Eating Disorder Therapy",
        "eating-disorder-therapy",
        synonyms=("eating disorder treatment",),
        keywords=("eating disorder", "anorexia", "bulimia", "binge"),
    ),
    CategorySeed("Psychotherapy", "psychotherapy", synonyms=("talk therapy", "psychoanalysis")),
    CategorySeed(
        "Art Therapy",
        "art-therapy",
        synonyms=("creative arts therapy", "expressive therapy"),
    ),
    CategorySeed(
        "Online Therapy",
        "online-therapy",
        synonyms=("teletherapy", "virtual therapy", "remote counseling"),
    ),
    CategorySeed(
        "Stress Management",
        "stress-management",
        synonyms=("stress counseling", "burnout"),
    ),
    CategorySeed(
        "Individual Therapy",
        "individual-therapy",
        synonyms=("individual counseling", "one-on-one therapy"),
    ),
)

DEFAULT_CITIES: tuple[CitySeed, ...] = (
    CitySeed("Austin", "TX", ("Downtown", "South Congress", "East Austin", "Hyde Park", "Zilker")),
    CitySeed(
        "Houston",
        "TX",
        ("Montrose", "The Heights", "River Oaks", "Rice Village", "Midtown", "Downtown"),
    ),
    CitySeed(
        "Phoenix",
        "AZ",
        ("Downtown", "Roosevelt Row", "Arcadia", "Biltmore", "Desert Ridge", "Paradise Valley"),
    ),
    CitySeed(
        "Philadelphia",
        "PA",
        (
            "Center City",
            "Fishtown",
            "Rittenhouse Square",
            "Old City",
            "Manayunk",
            "University City",
        ),
    ),
    CitySeed(
        "San Antonio",
        "TX",
        ("Downtown", "Pearl", "Alamo Heights", "Stone Oak", "Southtown", "Medical Center"),
    ),
    CitySeed(
        "San Diego",
        "CA",
        ("Gaslamp Quarter", "North Park", "Hillcrest", "La Jolla", "Pacific Beach", "Little Italy"),
    ),
    CitySeed(
        "Dallas",
        "TX",
        ("Uptown", "Deep Ellum", "Bishop Arts", "Preston Hollow", "Highland Park", "Oak Lawn"),
    ),
    CitySeed(
        "San Jose",
        "CA",
        ("Downtown", "Santana Row", "Willow Glen", "Japantown", "Rose Garden", "Almaden Valley"),
    ),
)

DEFAULT_REFERENCE_DATA = ReferenceData(categories=DEFAULT_CATEGORIES, cities=DEFAULT_CITIES)
