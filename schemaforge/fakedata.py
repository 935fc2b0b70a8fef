# File: schemaforge/fakedata.py
"""
SchemaForge - Synthetic Value Generator
=======================================
Plausible test data for every column of a ``SchemaAnalysis``, backed by
Faker.

Value resolution for one column, first hit wins:

1. the column's declared generator (``internet.email``) when it is active;
   an unknown recipe warns with ``UnknownGeneratorWarning`` and yields a
   random word
2. a keyword found in the lower-cased column name (``email``, ``phone``,
   ``age``, ``price``, ``date``, reference-looking ``...Id`` names); array,
   object and json columns skip this step
3. the column's canonical type

Locale handling:

* ``DataGenerator(locale=..., seed=...)`` owns its own ``Faker`` instance,
  so concurrent generators never interfere.
* ``set_locale`` only changes the default picked up by generators created
  *afterwards* (and by the module-level convenience functions).

No cross-table consistency: reference-looking values are standalone
tokens, not ids of generated rows.
"""

from __future__ import annotations

import json
import logging
import re
import warnings
from datetime import date, datetime, time
from enum import Enum
from typing import Any, Callable, Dict, FrozenSet, List, Optional, Tuple

from faker import Faker
from faker.config import AVAILABLE_LOCALES

from schemaforge.errors import UnknownGeneratorWarning
from schemaforge.models import (
    CanonicalType,
    Column,
    GeneratorSpec,
    SchemaAnalysis,
    Table,
    TEMPORAL_TYPES,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemaforge.fakedata")

# ---------------------------------------------------------------------------
# Locale state
# ---------------------------------------------------------------------------

DEFAULT_LOCALE: str = "en_US"

# Short codes accepted by set_locale / DataGenerator
_LOCALE_ALIASES: Dict[str, str] = {
    "en": "en_US",
    "uk": "uk_UA",
    "de": "de_DE",
    "fr": "fr_FR",
    "es": "es_ES",
    "it": "it_IT",
    "pl": "pl_PL",
    "pt": "pt_BR",
    "ru": "ru_RU",
    "ja": "ja_JP",
    "zh": "zh_CN",
    "nl": "nl_NL",
    "sv": "sv_SE",
    "tr": "tr_TR",
    "ko": "ko_KR",
    "cs": "cs_CZ",
}

_current_locale: str = DEFAULT_LOCALE


def resolve_locale(code: str) -> str:
    """
    Turn ``"de"``, ``"de-DE"`` or ``"de_de"`` into a Faker locale name.

    Raises:
        ValueError: for a code Faker does not ship.
    """
    if not isinstance(code, str) or not code.strip():
        raise ValueError("Locale code must be a non-empty string.")

    token: str = code.strip().replace("-", "_")
    token = _LOCALE_ALIASES.get(token.lower(), token)
    if token in AVAILABLE_LOCALES:
        return token

    lang, _, region = token.partition("_")
    candidate: str = f"{lang.lower()}_{region.upper()}" if region else lang.lower()
    if candidate in AVAILABLE_LOCALES:
        return candidate

    raise ValueError(f"Unsupported locale '{code}'.")


def set_locale(code: str) -> str:
    """
    Set the process-wide default locale and return the resolved name.

    Not thread-isolated.  Pass ``locale=`` explicitly where that matters.
    """
    global _current_locale
    resolved: str = resolve_locale(code)
    _current_locale = resolved
    logger.info("Default data locale set to %s.", resolved)
    return resolved


def get_locale() -> str:
    """The current process-wide default locale."""
    return _current_locale


# ---------------------------------------------------------------------------
# Insert-script dialects
# ---------------------------------------------------------------------------


class InsertDialect(str, Enum):
    """Target syntax of ``emit_insert_script``."""

    DOCUMENT_STORE = "document-store"
    RELATIONAL = "relational"


_DIALECT_ALIASES: Dict[str, InsertDialect] = {
    "document-store": InsertDialect.DOCUMENT_STORE,
    "document_store": InsertDialect.DOCUMENT_STORE,
    "mongodb": InsertDialect.DOCUMENT_STORE,
    "mongo": InsertDialect.DOCUMENT_STORE,
    "relational": InsertDialect.RELATIONAL,
    "sql": InsertDialect.RELATIONAL,
}


def resolve_dialect(dialect: Any) -> InsertDialect:
    """Raises ``ValueError`` for an unknown dialect name."""
    if isinstance(dialect, InsertDialect):
        return dialect
    resolved: Optional[InsertDialect] = _DIALECT_ALIASES.get(str(dialect).strip().lower())
    if resolved is None:
        raise ValueError(
            f"Unknown insert dialect '{dialect}'. "
            f"Expected one of: {', '.join(d.value for d in InsertDialect)}."
        )
    return resolved


# ---------------------------------------------------------------------------
# Word pools for recipe families Faker has no provider for
# ---------------------------------------------------------------------------

_PRODUCT_ADJECTIVES: Tuple[str, ...] = (
    "Small", "Ergonomic", "Rustic", "Intelligent", "Gorgeous", "Incredible",
    "Practical", "Sleek", "Handcrafted", "Refined", "Generic", "Licensed",
)
_PRODUCT_MATERIALS: Tuple[str, ...] = (
    "Steel", "Wooden", "Concrete", "Plastic", "Cotton", "Granite", "Rubber",
    "Metal", "Soft", "Fresh", "Frozen", "Bronze",
)
_PRODUCT_NOUNS: Tuple[str, ...] = (
    "Chair", "Car", "Computer", "Keyboard", "Mouse", "Bike", "Ball", "Gloves",
    "Pants", "Shirt", "Table", "Shoes", "Hat", "Towels", "Soap", "Tuna",
)
_DEPARTMENTS: Tuple[str, ...] = (
    "Books", "Movies", "Music", "Games", "Electronics", "Computers", "Home",
    "Garden", "Tools", "Grocery", "Health", "Beauty", "Toys", "Kids", "Sports",
)
_HACKER_ABBREVIATIONS: Tuple[str, ...] = (
    "TCP", "HTTP", "SDD", "RAM", "GB", "CSS", "SSL", "AGP", "SQL", "FTP",
    "PCI", "AI", "ADP", "RSS", "XML", "EXE", "COM", "HDD", "THX", "SMTP",
)
_HACKER_NOUNS: Tuple[str, ...] = (
    "driver", "protocol", "bandwidth", "panel", "microchip", "program",
    "port", "card", "array", "interface", "system", "sensor", "firewall",
    "hard drive", "pixel", "alarm", "feed", "monitor", "application",
    "transmitter", "bus", "circuit", "capacitor", "matrix",
)
_HACKER_VERBS: Tuple[str, ...] = (
    "back up", "bypass", "hack", "override", "compress", "copy", "navigate",
    "index", "connect", "generate", "quantify", "calculate", "synthesize",
    "input", "transmit", "program", "reboot", "parse",
)
_VEHICLE_MANUFACTURERS: Tuple[str, ...] = (
    "Toyota", "Ford", "Volkswagen", "Honda", "BMW", "Mercedes Benz", "Audi",
    "Hyundai", "Kia", "Nissan", "Tesla", "Volvo", "Renault", "Fiat",
)
_VEHICLE_MODELS: Tuple[str, ...] = (
    "Civic", "Corolla", "Golf", "Model 3", "Focus", "Accord", "Camry",
    "Mustang", "A4", "Octavia", "Clio", "Fiesta", "Passat", "Sportage",
)
_VEHICLE_TYPES: Tuple[str, ...] = (
    "Sedan", "SUV", "Coupe", "Convertible", "Hatchback", "Wagon", "Minivan",
    "Crew Cab Pickup", "Cargo Van", "Extended Cab Pickup",
)
_VEHICLE_FUELS: Tuple[str, ...] = ("Gasoline", "Diesel", "Electric", "Hybrid")
_STATUSES: Tuple[str, ...] = ("active", "inactive", "pending", "completed")

# ---------------------------------------------------------------------------
# Recipe table: (category, subtype) → producer
# ---------------------------------------------------------------------------

Recipe = Callable[[Faker], Any]


def _price(fake: Faker) -> float:
    return round(fake.random.uniform(1, 1000), 2)


def _product_name(fake: Faker) -> str:
    return " ".join((
        fake.random_element(_PRODUCT_ADJECTIVES),
        fake.random_element(_PRODUCT_MATERIALS),
        fake.random_element(_PRODUCT_NOUNS),
    ))


def _hacker_phrase(fake: Faker) -> str:
    return (
        f"If we {fake.random_element(_HACKER_VERBS)} the "
        f"{fake.random_element(_HACKER_NOUNS)}, we can get to the "
        f"{fake.random_element(_HACKER_ABBREVIATIONS)} "
        f"{fake.random_element(_HACKER_NOUNS)} through the "
        f"{fake.random_element(_HACKER_ABBREVIATIONS)} "
        f"{fake.random_element(_HACKER_NOUNS)}!"
    )


def _object_id(fake: Faker) -> str:
    return fake.hexify(text="^" * 24)


def _key_value(fake: Faker) -> Dict[str, Any]:
    return {"key": fake.word(), "value": fake.word()}


def _recent(fake: Faker) -> datetime:
    return fake.date_time_between(start_date="-30d", end_date="now")


_RECIPES: Dict[Tuple[str, str], Recipe] = {
    # person / name
    ("person", "firstname"): lambda f: f.first_name(),
    ("person", "lastname"): lambda f: f.last_name(),
    ("person", "fullname"): lambda f: f.name(),
    ("person", "prefix"): lambda f: f.prefix(),
    ("person", "suffix"): lambda f: f.suffix(),
    ("person", "jobtitle"): lambda f: f.job(),
    ("person", "sex"): lambda f: f.random_element(("female", "male")),
    ("name", "firstname"): lambda f: f.first_name(),
    ("name", "lastname"): lambda f: f.last_name(),
    ("name", "fullname"): lambda f: f.name(),
    ("name", "findname"): lambda f: f.name(),
    ("name", "jobtitle"): lambda f: f.job(),
    # internet
    ("internet", "email"): lambda f: f.email(),
    ("internet", "username"): lambda f: f.user_name(),
    ("internet", "url"): lambda f: f.url(),
    ("internet", "domainname"): lambda f: f.domain_name(),
    ("internet", "ip"): lambda f: f.ipv4(),
    ("internet", "ipv4"): lambda f: f.ipv4(),
    ("internet", "ipv6"): lambda f: f.ipv6(),
    ("internet", "mac"): lambda f: f.mac_address(),
    ("internet", "password"): lambda f: f.password(length=12),
    ("internet", "useragent"): lambda f: f.user_agent(),
    ("internet", "avatar"): lambda f: f.image_url(width=128, height=128),
    # phone
    ("phone", "number"): lambda f: f.phone_number(),
    ("phone", "phonenumber"): lambda f: f.phone_number(),
    ("phone", "imei"): lambda f: f.numerify("##-######-######-#"),
    # location / address
    ("location", "city"): lambda f: f.city(),
    ("location", "country"): lambda f: f.country(),
    ("location", "countrycode"): lambda f: f.country_code(),
    ("location", "streetaddress"): lambda f: f.street_address(),
    ("location", "street"): lambda f: f.street_name(),
    ("location", "zipcode"): lambda f: f.postcode(),
    ("location", "latitude"): lambda f: float(f.latitude()),
    ("location", "longitude"): lambda f: float(f.longitude()),
    ("address", "city"): lambda f: f.city(),
    ("address", "country"): lambda f: f.country(),
    ("address", "streetaddress"): lambda f: f.street_address(),
    ("address", "zipcode"): lambda f: f.postcode(),
    ("address", "fulladdress"): lambda f: f.address(),
    # commerce
    ("commerce", "productname"): _product_name,
    ("commerce", "product"): lambda f: f.random_element(_PRODUCT_NOUNS),
    ("commerce", "price"): _price,
    ("commerce", "department"): lambda f: f.random_element(_DEPARTMENTS),
    ("commerce", "productdescription"): lambda f: f.sentence(nb_words=12),
    ("commerce", "color"): lambda f: f.color_name(),
    # company
    ("company", "name"): lambda f: f.company(),
    ("company", "companyname"): lambda f: f.company(),
    ("company", "catchphrase"): lambda f: f.catch_phrase(),
    ("company", "bs"): lambda f: f.bs(),
    ("company", "buzzphrase"): lambda f: f.bs(),
    # database
    ("database", "mongodbobjectid"): _object_id,
    ("database", "objectid"): _object_id,
    ("database", "column"): lambda f: f.random_element(
        ("id", "title", "name", "email", "status", "createdAt", "updatedAt")
    ),
    ("database", "type"): lambda f: f.random_element(
        ("int", "varchar", "text", "boolean", "date", "timestamp", "json")
    ),
    # date
    ("date", "past"): lambda f: f.past_datetime(),
    ("date", "future"): lambda f: f.future_datetime(),
    ("date", "recent"): lambda f: f.date_time_between(start_date="-7d", end_date="now"),
    ("date", "soon"): lambda f: f.date_time_between(start_date="now", end_date="+7d"),
    ("date", "birthdate"): lambda f: f.date_of_birth(minimum_age=18, maximum_age=85),
    ("date", "month"): lambda f: f.month_name(),
    ("date", "weekday"): lambda f: f.day_of_week(),
    # finance
    ("finance", "amount"): _price,
    ("finance", "accountnumber"): lambda f: f.bban(),
    ("finance", "iban"): lambda f: f.iban(),
    ("finance", "creditcardnumber"): lambda f: f.credit_card_number(),
    ("finance", "currencycode"): lambda f: f.currency_code(),
    ("finance", "currencyname"): lambda f: f.currency_name(),
    # hacker
    ("hacker", "abbreviation"): lambda f: f.random_element(_HACKER_ABBREVIATIONS),
    ("hacker", "noun"): lambda f: f.random_element(_HACKER_NOUNS),
    ("hacker", "verb"): lambda f: f.random_element(_HACKER_VERBS),
    ("hacker", "phrase"): _hacker_phrase,
    # image
    ("image", "url"): lambda f: f.image_url(),
    ("image", "avatar"): lambda f: f.image_url(width=128, height=128),
    # lorem
    ("lorem", "word"): lambda f: f.word(),
    ("lorem", "words"): lambda f: " ".join(f.words(nb=3)),
    ("lorem", "sentence"): lambda f: f.sentence(),
    ("lorem", "paragraph"): lambda f: f.paragraph(),
    ("lorem", "text"): lambda f: f.text(max_nb_chars=200),
    ("lorem", "slug"): lambda f: f.slug(),
    # string / random
    ("string", "uuid"): lambda f: f.uuid4(),
    ("string", "alpha"): lambda f: f.lexify("??????????"),
    ("string", "alphanumeric"): lambda f: f.pystr(min_chars=10, max_chars=10),
    ("string", "numeric"): lambda f: f.numerify("##########"),
    ("random", "uuid"): lambda f: f.uuid4(),
    ("random", "word"): lambda f: f.word(),
    ("random", "alphanumeric"): lambda f: f.pystr(min_chars=10, max_chars=10),
    # number / datatype
    ("number", "int"): lambda f: f.random_int(min=0, max=1000),
    ("number", "integer"): lambda f: f.random_int(min=0, max=1000),
    ("number", "float"): _price,
    ("datatype", "number"): lambda f: f.random_int(min=0, max=1000),
    ("datatype", "float"): _price,
    ("datatype", "boolean"): lambda f: f.pybool(),
    ("datatype", "uuid"): lambda f: f.uuid4(),
    ("datatype", "datetime"): _recent,
    ("datatype", "string"): lambda f: f.pystr(min_chars=8, max_chars=16),
    ("datatype", "json"): _key_value,
    ("datatype", "array"): lambda f: f.words(nb=2),
    # system
    ("system", "filename"): lambda f: f.file_name(),
    ("system", "fileext"): lambda f: f.file_extension(),
    ("system", "mimetype"): lambda f: f.mime_type(),
    ("system", "filepath"): lambda f: f.file_path(),
    # vehicle
    ("vehicle", "vehicle"): lambda f: (
        f"{f.random_element(_VEHICLE_MANUFACTURERS)} {f.random_element(_VEHICLE_MODELS)}"
    ),
    ("vehicle", "manufacturer"): lambda f: f.random_element(_VEHICLE_MANUFACTURERS),
    ("vehicle", "model"): lambda f: f.random_element(_VEHICLE_MODELS),
    ("vehicle", "type"): lambda f: f.random_element(_VEHICLE_TYPES),
    ("vehicle", "fuel"): lambda f: f.random_element(_VEHICLE_FUELS),
    ("vehicle", "vin"): lambda f: f.bothify("?##??#?#?########").upper(),
    # boolean
    ("boolean", "boolean"): lambda f: f.pybool(),
    ("boolean", "bool"): lambda f: f.pybool(),
}


def _recipe_key(category: str, subtype: str) -> Tuple[str, str]:
    return category.strip().lower(), subtype.strip().lower().replace("_", "")


def has_recipe(category: str, subtype: str) -> bool:
    """True when ``category.subtype`` names an implemented recipe."""
    return _recipe_key(category, subtype) in _RECIPES


def available_recipes() -> List[str]:
    """Sorted ``category.subtype`` keys of every implemented recipe."""
    return sorted(f"{c}.{s}" for c, s in _RECIPES)


# ---------------------------------------------------------------------------
# Column-name keyword table (ordered, first match wins)
# ---------------------------------------------------------------------------

# Names ending in "id" that contain one of these look like references
_REFERENCE_HINTS: Tuple[str, ...] = (
    "author", "user", "post", "category", "product", "order", "comment",
    "review", "parent", "customer", "employee",
)

_KEYWORD_RULES: Tuple[Tuple[Tuple[str, ...], Recipe], ...] = (
    (("email",), lambda f: f.email()),
    (("phone", "mobile"), lambda f: f.phone_number()),
    (("username", "login"), lambda f: f.user_name()),
    (("firstname", "first_name"), lambda f: f.first_name()),
    (("lastname", "last_name"), lambda f: f.last_name()),
    (("password",), lambda f: f.password(length=12)),
    (("name",), lambda f: f.name()),
    (("image", "avatar", "photo", "picture"), lambda f: f.image_url()),
    (("job",), lambda f: f.job()),
    (("description", "content", "message", "body", "bio"), lambda f: f.paragraph()),
    (("title",), lambda f: f.sentence(nb_words=4).rstrip(".")),
    (("age",), lambda f: f.random_int(min=18, max=85)),
    (("price", "amount", "cost", "total", "salary"), _price),
    (("quantity", "stock"), lambda f: f.random_int(min=0, max=100)),
    (("rating",), lambda f: f.random_int(min=1, max=5)),
    (("status",), lambda f: f.random_element(_STATUSES)),
    (("address",), lambda f: f.street_address()),
    (("city",), lambda f: f.city()),
    (("country",), lambda f: f.country()),
    (("zip", "postal"), lambda f: f.postcode()),
    (("url", "website", "link"), lambda f: f.url()),
    (("company",), lambda f: f.company()),
    (("color", "colour"), lambda f: f.color_name()),
    (("uuid", "guid"), lambda f: f.uuid4()),
    (("date", "updated"), _recent),
    (("created",), lambda f: f.date_time_between(start_date="-1y", end_date="now")),
    (("category",), lambda f: f.random_element(_DEPARTMENTS)),
    (("tag",), lambda f: f.word()),
)

# Structured columns keep their shape whatever their name says
_SHAPED_TYPES: FrozenSet[str] = frozenset({
    CanonicalType.ARRAY.value,
    CanonicalType.OBJECT.value,
    CanonicalType.JSON.value,
})

# ---------------------------------------------------------------------------
# Canonical-type fallbacks
# ---------------------------------------------------------------------------

_INT_TYPES: FrozenSet[str] = frozenset({
    CanonicalType.NUMBER.value,
    CanonicalType.INTEGER.value,
})
_FLOAT_TYPES: FrozenSet[str] = frozenset({
    CanonicalType.FLOAT.value,
    CanonicalType.DOUBLE.value,
    CanonicalType.DECIMAL.value,
})

_TYPE_FALLBACKS: Dict[str, Recipe] = {
    CanonicalType.BOOLEAN.value: lambda f: f.pybool(),
    CanonicalType.UUID.value: lambda f: f.uuid4(),
    CanonicalType.OBJECTID.value: _object_id,
    CanonicalType.ARRAY.value: lambda f: f.words(nb=2),
    CanonicalType.OBJECT.value: _key_value,
    CanonicalType.JSON.value: _key_value,
}

# Bookkeeping columns never generated
_SKIPPED_COLUMNS: FrozenSet[str] = frozenset({"createdAt", "updatedAt", "_id"})

_SQL_IDENTIFIER_RE: re.Pattern[str] = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# Reserved words that must be quoted when used as identifiers (common subset)
_SQL_RESERVED_WORDS: FrozenSet[str] = frozenset({
    "all", "alter", "and", "as", "asc", "begin", "between", "by", "case", "cast",
    "check", "column", "commit", "constraint", "create", "cross", "current_date",
    "current_time", "current_timestamp", "current_user", "database", "default",
    "delete", "desc", "distinct", "drop", "else", "end", "except", "exists",
    "false", "fetch", "for", "foreign", "from", "full", "grant", "group", "having",
    "in", "index", "inner", "insert", "intersect", "into", "is", "join", "key",
    "left", "like", "limit", "natural", "not", "null", "offset", "on", "or",
    "order", "outer", "primary", "references", "returning", "revoke", "right",
    "rollback", "row", "rows", "schema", "select", "session_user", "set", "some",
    "table", "then", "to", "transaction", "trigger", "true", "union", "unique",
    "update", "user", "using", "values", "view", "when", "where", "window", "with",
})


# ---------------------------------------------------------------------------
# Generator
# ---------------------------------------------------------------------------


class DataGenerator:
    """
    Synthetic-value generator bound to one locale and one random stream.

    Args:
        locale: Locale code; ``None`` means the current ``get_locale()``.
        seed: Seeds this generator's ``Faker`` instance for reproducible output.

    Raises:
        ValueError: for an unsupported locale.
    """

    def __init__(self, locale: Optional[str] = None, seed: Optional[int] = None) -> None:
        self.locale: str = resolve_locale(locale) if locale is not None else get_locale()
        self.seed: Optional[int] = seed
        self._faker: Faker = Faker(self.locale)
        if seed is not None:
            self._faker.seed_instance(seed)
        logger.debug("DataGenerator created: locale=%s seed=%s", self.locale, seed)

    # -- single values ------------------------------------------------------

    def generate_value(self, column: Column) -> Any:
        """One plausible value for *column*."""
        generator: Optional[GeneratorSpec] = column.active_generator
        if generator is not None:
            return self._from_recipe(generator, column.name)

        by_name: Optional[Recipe] = None
        if column.canonical_type not in _SHAPED_TYPES:
            by_name = self._keyword_recipe(column.name)
        if by_name is not None:
            return by_name(self._faker)

        return self._from_type(column.canonical_type)

    def _from_recipe(self, generator: GeneratorSpec, column_name: str) -> Any:
        recipe: Optional[Recipe] = _RECIPES.get(_recipe_key(generator.category, generator.subtype))
        if recipe is not None:
            try:
                return recipe(self._faker)
            except AttributeError as exc:
                # Some locales lack a provider method (e.g. no postcode format)
                reason: str = f"not available for locale {self.locale} ({exc})"
        else:
            reason = "not implemented"

        message: str = (
            f"Generator '{generator.key}' for column '{column_name}' is {reason}; "
            f"using a random word."
        )
        logger.warning(message)
        warnings.warn(message, UnknownGeneratorWarning, stacklevel=3)
        return self._faker.word()

    @staticmethod
    def _keyword_recipe(column_name: str) -> Optional[Recipe]:
        lower: str = column_name.lower()
        if lower.endswith("id") and any(hint in lower for hint in _REFERENCE_HINTS):
            return _object_id
        for keywords, recipe in _KEYWORD_RULES:
            if any(keyword in lower for keyword in keywords):
                return recipe
        return None

    def _from_type(self, canonical_type: str) -> Any:
        if canonical_type in _INT_TYPES:
            return self._faker.random_int(min=1, max=1000)
        if canonical_type in _FLOAT_TYPES:
            return round(self._faker.random.uniform(0, 1000), 2)
        if canonical_type in TEMPORAL_TYPES:
            return _recent(self._faker)
        fallback: Optional[Recipe] = _TYPE_FALLBACKS.get(canonical_type)
        if fallback is not None:
            return fallback(self._faker)
        return self._faker.word()

    # -- documents & datasets -----------------------------------------------

    def generate_document(self, table: Table) -> Dict[str, Any]:
        """
        One record for *table*, in column order.  Primary columns and the
        ``createdAt``/``updatedAt``/``_id`` bookkeeping columns are left out.
        """
        return {
            col.name: self.generate_value(col)
            for col in table.columns
            if not col.is_primary and col.name not in _SKIPPED_COLUMNS
        }

    def generate_documents(self, table: Table, count: int) -> List[Dict[str, Any]]:
        if count < 0:
            raise ValueError(f"count must be >= 0, got {count}.")
        return [self.generate_document(table) for _ in range(count)]

    def generate_documents_for(
        self, analysis: SchemaAnalysis, table_name: str, count: int
    ) -> List[Dict[str, Any]]:
        """Preview records for one table; raises ``TableNotFoundError``."""
        return self.generate_documents(analysis.require_table(table_name), count)

    def generate_dataset(
        self, analysis: SchemaAnalysis, count_per_table: int
    ) -> Dict[str, List[Dict[str, Any]]]:
        """``count_per_table`` records for every table, keyed by table name."""
        dataset: Dict[str, List[Dict[str, Any]]] = {}
        for table in analysis.tables:
            dataset[table.name] = self.generate_documents(table, count_per_table)
        logger.info(
            "Generated %d record(s) for each of %d table(s) [%s].",
            count_per_table,
            len(dataset),
            self.locale,
        )
        return dataset

    # -- insert scripts -----------------------------------------------------

    def emit_insert_script(
        self,
        analysis: SchemaAnalysis,
        dialect: Any = InsertDialect.DOCUMENT_STORE,
        count_per_table: int = 10,
    ) -> str:
        """
        Text insert script for a fresh dataset.  Nothing is executed.

        Raises:
            ValueError: for an unknown dialect or a negative count.
        """
        resolved: InsertDialect = resolve_dialect(dialect)
        dataset: Dict[str, List[Dict[str, Any]]] = self.generate_dataset(
            analysis, count_per_table
        )

        blocks: List[str] = []
        for table_name, records in dataset.items():
            if resolved is InsertDialect.DOCUMENT_STORE:
                blocks.append(self._document_store_block(table_name, records))
            else:
                blocks.append(_relational_block(table_name, records))

        logger.debug("Insert script emitted: dialect=%s tables=%d", resolved.value, len(blocks))
        return "\n\n".join(blocks) + "\n" if blocks else ""

    def _document_store_block(self, table_name: str, records: List[Dict[str, Any]]) -> str:
        lines: List[str] = [f"// {table_name}"]
        if not records:
            lines.append(f"// no records for {table_name}")
            return "\n".join(lines)

        lines.append(f"db.getCollection({json.dumps(table_name)}).insertMany([")
        for idx, record in enumerate(records):
            fields: List[str] = [f'    "_id": ObjectId("{_object_id(self._faker)}")']
            for key, value in record.items():
                fields.append(f"    {json.dumps(key)}: {_js_literal(value)}")
            closer: str = "  }," if idx < len(records) - 1 else "  }"
            lines.append("  {")
            lines.append(",\n".join(fields))
            lines.append(closer)
        lines.append("]);")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Literal formatting
# ---------------------------------------------------------------------------


def _js_literal(value: Any) -> str:
    """Mongo-shell literal for a generated value."""
    if isinstance(value, datetime):
        return f'ISODate("{value.isoformat()}")'
    if isinstance(value, date):
        return f'ISODate("{value.isoformat()}")'
    if isinstance(value, time):
        return json.dumps(value.isoformat())
    if isinstance(value, list):
        return "[" + ", ".join(_js_literal(v) for v in value) + "]"
    if isinstance(value, dict):
        return "{" + ", ".join(f"{json.dumps(str(k))}: {_js_literal(v)}" for k, v in value.items()) + "}"
    if value is None:
        return "null"
    return json.dumps(value)


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def sql_literal(value: Any) -> str:
    """
    SQL literal: single quotes doubled, temporal values ISO-formatted and
    quoted, ``None`` as ``NULL``, mappings/lists as quoted JSON.
    """
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, (datetime, date, time)):
        text: str = value.isoformat()
    elif isinstance(value, (dict, list)):
        text = json.dumps(value, default=_json_default)
    else:
        text = str(value)
    return "'" + text.replace("'", "''") + "'"


def sql_identifier(name: str) -> str:
    """Bare identifier when safe, otherwise double-quoted.  Reserved words are always quoted."""
    if _SQL_IDENTIFIER_RE.match(name) and name.lower() not in _SQL_RESERVED_WORDS:
        return name
    return '"' + name.replace('"', '""') + '"'


def _relational_block(table_name: str, records: List[Dict[str, Any]]) -> str:
    lines: List[str] = [f"-- {table_name}"]
    table: str = sql_identifier(table_name)
    for record in records:
        if not record:
            lines.append(f"INSERT INTO {table} DEFAULT VALUES;")
            continue
        columns: str = ", ".join(sql_identifier(k) for k in record)
        values: str = ", ".join(sql_literal(v) for v in record.values())
        lines.append(f"INSERT INTO {table} ({columns}) VALUES ({values});")
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Module-level convenience functions
# ---------------------------------------------------------------------------


def generate_value(column: Column, *, locale: Optional[str] = None, seed: Optional[int] = None) -> Any:
    return DataGenerator(locale=locale, seed=seed).generate_value(column)


def generate_document(
    table: Table, *, locale: Optional[str] = None, seed: Optional[int] = None
) -> Dict[str, Any]:
    return DataGenerator(locale=locale, seed=seed).generate_document(table)


def generate_dataset(
    analysis: SchemaAnalysis,
    count_per_table: int,
    *,
    locale: Optional[str] = None,
    seed: Optional[int] = None,
) -> Dict[str, List[Dict[str, Any]]]:
    return DataGenerator(locale=locale, seed=seed).generate_dataset(analysis, count_per_table)


def emit_insert_script(
    analysis: SchemaAnalysis,
    dialect: Any = InsertDialect.DOCUMENT_STORE,
    count_per_table: int = 10,
    *,
    locale: Optional[str] = None,
    seed: Optional[int] = None,
) -> str:
    return DataGenerator(locale=locale, seed=seed).emit_insert_script(
        analysis, dialect, count_per_table
    )


__all__: List[str] = [
    "DEFAULT_LOCALE",
    "InsertDialect",
    "DataGenerator",
    "resolve_locale",
    "set_locale",
    "get_locale",
    "resolve_dialect",
    "has_recipe",
    "available_recipes",
    "sql_literal",
    "sql_identifier",
    "generate_value",
    "generate_document",
    "generate_dataset",
    "emit_insert_script",
]

logger.debug("schemaforge.fakedata loaded — %d public symbols.", len(__all__))
