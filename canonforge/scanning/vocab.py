"""Static lookup tables used by the mention extractor and the classifier.

Nothing in this module is computed at scan time. All lookups are
case-insensitive; the capitalized spellings below are kept for readability.
"""

import re

IGNORED_TERMS: frozenset[str] = frozenset(
    {
        # Game mechanics
        "Strength", "Dexterity", "Constitution", "Intelligence", "Wisdom", "Charisma",
        "Armor Class", "Hit Points", "Hit Dice", "Spell Slots", "Proficiency Bonus",
        "Saving Throw", "Ability Check", "Skill Check", "Initiative", "Advantage",
        "Disadvantage", "Concentration", "Resistance", "Vulnerability", "Immunity",
        "Action", "Bonus Action", "Reaction", "Movement", "Opportunity Attack",
        "Ranged Attack", "Melee Attack", "Critical Hit", "Natural Twenty", "Spell Save",
        "Death Save", "Death Saving Throw",
        # Classes
        "Barbarian", "Bard", "Cleric", "Druid", "Fighter", "Monk", "Paladin", "Ranger",
        "Rogue", "Sorcerer", "Warlock", "Wizard", "Artificer", "Blood Hunter",
        # Peoples
        "Human", "Elf", "Dwarf", "Halfling", "Gnome", "Half-Elf", "Half-Orc", "Tiefling",
        "Dragonborn", "Aasimar", "Genasi", "Goliath", "Tabaxi", "Kenku", "Firbolg",
        "Triton", "Yuan-ti", "Changeling", "Kalashtar", "Shifter", "Warforged", "Goblin",
        "Hobgoblin", "Bugbear", "Kobold", "Orc", "Lizardfolk", "Tortle",
        # Creature types
        "Dragon", "Giant", "Undead", "Fiend", "Celestial", "Fey", "Elemental", "Construct",
        "Monstrosity", "Aberration", "Ooze", "Plant", "Beast", "Humanoid",
        # Equipment
        "Longsword", "Shortsword", "Greatsword", "Rapier", "Scimitar", "Dagger",
        "Battleaxe", "Greataxe", "Handaxe", "Warhammer", "Maul", "Flail", "Morningstar",
        "Quarterstaff", "Spear", "Javelin", "Trident", "Pike", "Halberd", "Glaive",
        "Longbow", "Shortbow", "Crossbow", "Light Crossbow", "Heavy Crossbow",
        "Hand Crossbow", "Sling", "Blowgun", "Leather Armor", "Studded Leather",
        "Hide Armor", "Chain Shirt", "Scale Mail", "Breastplate", "Half Plate",
        "Ring Mail", "Chain Mail", "Splint Armor", "Plate Armor", "Padded Armor",
        # Schools and sources of magic
        "Abjuration", "Conjuration", "Divination", "Enchantment", "Evocation", "Illusion",
        "Necromancy", "Transmutation", "Arcane", "Divine", "Primal", "Psionic",
        # Conditions
        "Blinded", "Charmed", "Deafened", "Frightened", "Grappled", "Incapacitated",
        "Invisible", "Paralyzed", "Petrified", "Poisoned", "Prone", "Restrained",
        "Stunned", "Unconscious", "Exhaustion",
        # Damage types
        "Bludgeoning", "Piercing", "Slashing", "Fire", "Cold", "Lightning", "Thunder",
        "Acid", "Poison", "Necrotic", "Radiant", "Force", "Psychic",
        # Alignments
        "Lawful Good", "Neutral Good", "Chaotic Good", "Lawful Neutral", "True Neutral",
        "Chaotic Neutral", "Lawful Evil", "Neutral Evil", "Chaotic Evil",
        # Item properties
        "Finesse", "Versatile", "Two-Handed", "Light", "Heavy", "Reach", "Thrown",
        "Loading", "Ammunition", "Special",
        # Time
        "Dawn", "Dusk", "Midnight", "Noon", "Morning", "Evening", "Night", "Day", "Week",
        "Month", "Year", "Century", "Age", "Era",
        # Directions
        "North", "South", "East", "West", "Northeast", "Northwest", "Southeast", "Southwest",
        # Common fantasy vocabulary
        "Magic", "Magical", "Curse", "Cursed", "Blessing", "Blessed", "Holy", "Unholy",
        "Sacred", "Profane", "Enchanted", "Forged", "Crafted", "Created", "Imbued",
        "Mundane", "Ancient", "Lost", "Hidden", "Secret", "Forbidden", "Legendary",
        "Mythical", "Artifact",
        # Generic
        "Unknown", "None", "Other", "Various", "Multiple", "Several", "Many", "Few",
    }
)

SPELL_NAMES: frozenset[str] = frozenset(
    {
        "Fireball", "Magic Missile", "Lightning Bolt", "Cure Wounds", "Healing Word",
        "Eldritch Blast", "Mage Hand", "Shield of Faith", "Counterspell", "Dispel Magic",
        "Misty Step", "Thunderwave", "Sacred Flame", "Hold Person", "Hold Monster",
        "Power Word Kill", "Feather Fall", "Detect Magic", "Identify", "Teleport",
        "Wish", "Fly", "Haste", "Banishment", "Polymorph", "Revivify", "Raise Dead",
        "Prestidigitation", "Thaumaturgy", "Druidcraft", "Guidance", "Bless",
        "Sleep", "Charm Person", "Invisibility", "Scrying", "Sending", "Cone of Cold",
        "Wall of Fire", "Meteor Swarm", "Finger of Death", "Time Stop",
    }
)

FUNCTION_WORDS: frozenset[str] = frozenset(
    {
        "The", "This", "That", "They", "There", "These", "Those", "When", "Where", "What",
        "Which", "However", "Although", "Because", "Therefore", "Furthermore", "Moreover",
        "Nevertheless", "Meanwhile", "Otherwise", "Indeed", "Perhaps", "Certainly",
        "Probably", "Obviously", "Clearly", "Simply", "Actually", "Basically",
        "Essentially", "Generally", "Normally", "Usually", "Often", "Sometimes", "Always",
        "Never", "Here", "Now", "Then", "Today", "Tomorrow", "Yesterday", "Later", "Soon",
        "Before", "After", "During", "While", "Until", "Since", "Once", "Twice", "First",
        "Second", "Third", "Finally", "Last", "Next", "Another", "Other", "Each", "Every",
        "Both", "Either", "Neither", "Many", "Most", "Some", "Any", "All", "None", "Few",
        "Several", "Much", "More", "Less", "Least", "Very", "Quite", "Rather", "Almost",
        "Nearly", "Hardly", "Barely", "Just", "Only", "Even", "Still", "Already", "Yet",
        "Not", "No", "Yes", "And", "But", "Or", "For", "Nor", "So", "With", "Without",
        "Within", "Beyond", "Against", "Among", "Between", "Through", "Throughout",
        "Across", "Around", "About", "Above", "Below", "Under", "Over", "Behind", "Beside",
        "Inside", "Outside", "Into", "Onto", "Upon", "From", "Toward", "Towards",
        "His", "Her", "Its", "Their", "Our", "Your", "She", "He", "It", "We", "You",
        "A", "An", "In", "On", "At", "To", "Of", "By", "If", "As",
    }
)

# Game nouns that are capitalized in rules text.
GAME_NOUNS: frozenset[str] = frozenset(
    {
        "Attack", "Damage", "Armor", "Class", "Level", "Hit", "Points", "Spell", "Weapon",
        "Shield", "Sword", "Bow", "Arrow", "Staff", "Wand", "Ring", "Potion", "Scroll",
        "Gold", "Silver", "Copper", "Platinum",
    }
)

STOPWORDS: frozenset[str] = FUNCTION_WORDS | GAME_NOUNS

TITLE_WORDS: tuple[str, ...] = (
    "High Priestess", "High Priest", "Grand Master", "Lord", "Lady", "King", "Queen",
    "Prince", "Princess", "Duke", "Duchess", "Baron", "Baroness", "Count", "Countess",
    "Earl", "Marquis", "Marquess", "Viscount", "Sir", "Dame", "Master", "Mistress",
    "Captain", "Commander", "General", "Admiral", "Chief", "Doctor", "Professor",
    "Elder", "Priestess", "Archmage", "Archdruid", "Father", "Mother", "Brother",
    "Sister", "Saint",
)

NAME_CONNECTORS: tuple[str, ...] = ("the", "of", "de", "von", "van")

PLACE_NOUNS: tuple[str, ...] = (
    "keep", "glade", "spire", "citadel", "tower", "hollow", "vale", "valley", "grove",
    "forest", "woods", "wood", "marsh", "fen", "mire", "peak", "peaks", "mountains",
    "hills", "crossing", "bridge", "gate", "gates", "hall", "halls", "temple", "shrine",
    "sanctum", "sanctuary", "abbey", "monastery", "cathedral", "tavern", "inn",
    "market", "bazaar", "city", "town", "village", "hamlet", "kingdom", "realm",
    "empire", "isle", "island", "river", "lake", "sea", "bay", "fortress", "castle",
    "stronghold", "ruins", "catacombs", "crypt", "tomb", "dungeon", "cavern", "caverns",
    "caves", "mines", "port", "harbor", "haven", "district", "quarter", "ward",
    "wastes", "desert", "steppe", "reach", "falls", "pass", "road", "square", "plaza",
    "manor", "palace", "outpost", "barrow", "warrens", "depths",
)

LOCATION_WORDS: frozenset[str] = frozenset(
    {
        "mountains", "mountain", "mount", "peak", "summit", "ridge", "hills", "hill",
        "forest", "woods", "woodland", "grove", "thicket", "jungle", "lake", "river",
        "stream", "creek", "falls", "waterfall", "sea", "ocean", "bay", "gulf", "strait",
        "island", "isle", "archipelago", "peninsula", "coast", "shore", "beach", "castle",
        "fortress", "citadel", "stronghold", "keep", "tower", "spire", "palace", "manor",
        "estate", "city", "town", "village", "hamlet", "settlement", "outpost", "camp",
        "vale", "valley", "canyon", "gorge", "ravine", "plains", "prairie", "steppe",
        "tundra", "desert", "wasteland", "badlands", "swamp", "marsh", "bog", "fen",
        "mire", "wetlands", "port", "harbor", "haven", "dock", "pier", "hold", "hall",
        "temple", "shrine", "sanctum", "sanctuary", "monastery", "abbey", "cathedral",
        "chapel", "dungeon", "cavern", "cave", "grotto", "mines", "quarry", "pit", "chasm",
        "rift", "realm", "kingdom", "empire", "domain", "territory", "province", "region",
        "land", "lands", "road", "path", "trail", "way", "pass", "crossing", "bridge",
        "gate", "gates", "wall", "district", "quarter", "ward", "market", "square",
        "plaza", "inn", "tavern", "pub", "alehouse", "hollow", "glade", "ruins", "crypt",
        "tomb", "catacombs", "street",
    }
)

FACTION_WORDS: frozenset[str] = frozenset(
    {
        "guild", "order", "brotherhood", "sisterhood", "clan", "tribe", "house", "family",
        "organization", "society", "cult", "church", "circle", "council", "assembly",
        "consortium", "syndicate", "cartel", "army", "legion", "band", "company",
        "faction", "alliance", "coalition", "league", "union", "confederation", "pact",
        "covenant", "cabal", "coven", "conclave",
    }
)

ITEM_WORDS: frozenset[str] = frozenset(
    {
        "sword", "blade", "dagger", "knife", "axe", "hammer", "mace", "flail", "spear",
        "lance", "bow", "crossbow", "staff", "wand", "rod", "orb", "ring", "amulet",
        "necklace", "pendant", "bracelet", "bracer", "bracers", "gauntlet", "gauntlets",
        "glove", "gloves", "helm", "helmet", "crown", "circlet", "mask", "cloak", "robe",
        "armor", "shield", "boots", "greaves", "belt", "sash", "tome", "book", "scroll",
        "grimoire", "codex", "gem", "jewel", "crystal", "stone", "potion", "elixir",
        "philter", "tincture", "artifact", "relic", "treasure", "hoard",
    }
)

QUEST_WORDS: frozenset[str] = frozenset(
    {"quest", "mission", "task", "objective", "goal", "prophecy", "legend", "rumor", "bounty", "errand"}
)

# Phrases that, when they directly precede a mention, mark it as a place.
LOCATION_LEAD_INS: tuple[str, ...] = (
    "located in", "located at", "situated in", "situated on", "found in", "lies in",
    "lies at", "stands in", "built in", "built on", "traveled to", "travelled to",
    "journeyed to", "arrived at", "arrived in", "departed from", "left from",
    "returned to", "heading to", "going to", "in", "at", "from", "near", "within",
    "beyond", "outside", "into", "toward", "towards", "across",
)

FACTION_LEAD_INS: tuple[str, ...] = (
    "member of", "members of", "belongs to", "joined", "leader of", "leads", "founded",
    "established", "represents", "allied with", "enemies of", "rivals of", "serves",
    "sworn to",
)

ITEM_LEAD_INS: tuple[str, ...] = (
    "wielded", "wielding", "wields", "carried", "carrying", "carries", "worn", "wearing",
    "wears", "holds", "holding", "possesses", "possessing", "bears", "bearing",
    "forged", "crafted", "enchanted", "imbued", "created",
)

NPC_VERBS: frozenset[str] = frozenset(
    {
        "said", "says", "spoke", "replied", "asked", "answered", "whispered", "shouted",
        "exclaimed", "nodded", "shook", "smiled", "frowned", "laughed", "sighed",
        "looked", "gazed", "glanced", "turned", "walked", "ran", "stood", "sat", "died",
        "killed", "murdered", "betrayed", "saved", "helped", "attacked", "defended",
        "waits", "waited", "rules", "ruled", "leads", "led", "lives", "lived", "runs",
        "tends", "watches", "knows", "offers", "sells", "guards",
    }
)

# "X by Name" marks Name as the agent of the action.
AGENT_LEAD_INS: tuple[str, ...] = (
    "forged by", "crafted by", "made by", "built by", "owned by", "wielded by",
    "carried by", "led by", "ruled by", "founded by", "slain by", "killed by",
    "guarded by", "run by", "served by", "written by", "commanded by",
)

# Creation/ownership phrases that make nearby single capitalized words worth a look.
NAMING_VERB_PHRASES: tuple[str, ...] = AGENT_LEAD_INS + (
    "known as", "called", "named", "dubbed", "titled", "belonged to", "belongs to",
    "property of", "gift from", "heir of", "son of", "daughter of",
)

_IGNORED_LOWER = frozenset(t.lower() for t in IGNORED_TERMS)
_SPELLS_LOWER = frozenset(s.lower() for s in SPELL_NAMES)
_STOPWORDS_LOWER = frozenset(s.lower() for s in STOPWORDS)
_FUNCTION_LOWER = frozenset(s.lower() for s in FUNCTION_WORDS)


def should_ignore_term(term: str) -> bool:
    """True if ``term`` is domain jargon that must never become an entity."""
    return term in IGNORED_TERMS or term.lower() in _IGNORED_LOWER


def is_spell_name(term: str) -> bool:
    return term.lower() in _SPELLS_LOWER


def is_stopword(word: str) -> bool:
    return word.lower() in _STOPWORDS_LOWER


def is_function_word(word: str) -> bool:
    return word.lower() in _FUNCTION_LOWER


def lead_in_pattern(phrases: tuple[str, ...]) -> re.Pattern[str]:
    """Compile a pattern matching text that *ends* with one of ``phrases``.

    An optional article or possessive may sit between the phrase and the end,
    as in "wielding the" or "member of the".
    """
    alternatives = "|".join(re.escape(p) for p in sorted(phrases, key=len, reverse=True))
    return re.compile(
        rf"\b(?:{alternatives})\s+(?:(?:the|a|an|his|her|their|its)\s+)?$",
        re.IGNORECASE,
    )
