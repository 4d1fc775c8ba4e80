"""
Shared pytest fixtures for the NPC editor test suite.

Provides:
    - registry: the compiled-in variant registry
    - factory: an EntityFactory with a fixed clock (ids start at 1_000_000)
    - resolver / validator / form: engine components on the same registry
    - dialogue_draft / merchant_draft: fresh template drafts
    - persistence: an InMemoryPersistence with one stored zone
    - notifier: a RecordingNotifier
    - collection / wizard: wired on the above
"""

import sys
from pathlib import Path

import pytest

# ---------------------------------------------------------------------------
# Ensure the packages are importable regardless of where pytest is invoked
# ---------------------------------------------------------------------------

PROJECT_ROOT = Path(__file__).resolve().parent.parent

if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from npc_engine.collection import CollectionManager  # noqa: E402
from npc_engine.factory import EntityFactory, IdAllocator  # noqa: E402
from npc_engine.field_resolver import FieldResolver  # noqa: E402
from npc_engine.form_builder import FormBuilder  # noqa: E402
from npc_engine.notifications import RecordingNotifier  # noqa: E402
from npc_engine.persistence import InMemoryPersistence  # noqa: E402
from npc_engine.registry import TypeRegistry  # noqa: E402
from npc_engine.validator import Validator  # noqa: E402
from npc_engine.wizard import WizardController  # noqa: E402


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def registry():
    return TypeRegistry.default()


@pytest.fixture
def factory(registry):
    """Factory whose clock is frozen, so ids are 1_000_000, 1_000_001, ..."""
    return EntityFactory(registry, IdAllocator(clock=lambda: 1000.0))


@pytest.fixture
def resolver(registry):
    return FieldResolver(registry)


@pytest.fixture
def validator(registry):
    return Validator(registry)


@pytest.fixture
def form(registry, resolver, validator):
    return FormBuilder(registry, resolver, validator)


@pytest.fixture
def dialogue_draft(factory):
    return factory.create_draft("dialogue")


@pytest.fixture
def merchant_draft(factory):
    return factory.create_draft("merchant")


@pytest.fixture
def stored_npcs():
    """Two records already stored in zone ``route_1``."""
    return [
        {
            "id": 101,
            "name": "Guide Marcel",
            "type": "dialogue",
            "position": {"x": 100, "y": 100},
            "sprite": "guide.png",
            "direction": "south",
            "dialogueIds": ["npc.dialogue.guide.welcome.1"],
        },
        {
            "id": 102,
            "name": "Merchant Julie",
            "type": "merchant",
            "position": {"x": 200, "y": 150},
            "sprite": "shopkeeper_female.png",
            "direction": "west",
            "shopId": "route_1_mart",
            "shopType": "pokemart",
        },
    ]


@pytest.fixture
def persistence(stored_npcs):
    return InMemoryPersistence({"route_1": stored_npcs})


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def collection(persistence, factory, notifier):
    return CollectionManager(persistence, factory, notifier)


@pytest.fixture
def wizard(collection, form, notifier):
    return WizardController(collection, form, notifier)
