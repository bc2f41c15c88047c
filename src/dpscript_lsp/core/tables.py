"""Static completion data: entity ids, selector aliases, parameters and members."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

ENTITIES: tuple[str, ...] = (
    "item",
    "xp_orb",
    "area_effect_cloud",
    "elder_guardian",
    "wither_skeleton",
    "stray",
    "egg",
    "leash_knot",
    "painting",
    "arrow",
    "snowball",
    "fireball",
    "small_fireball",
    "ender_pearl",
    "eye_of_ender_signal",
    "potion",
    "xp_bottle",
    "item_frame",
    "wither_skull",
    "tnt",
    "falling_block",
    "fireworks_rocket",
    "husk",
    "spectral_arrow",
    "shulker_bullet",
    "dragon_fireball",
    "zombie_villager",
    "skeleton_horse",
    "zombie_horse",
    "armor_stand",
    "donkey",
    "mule",
    "evocation_fangs",
    "evocation_illager",
    "vex",
    "vindication_illager",
    "illusion_illager",
    "commandblock_minecart",
    "boat",
    "minecart",
    "chest_minecart",
    "furnace_minecart",
    "tnt_minecart",
    "hopper_minecart",
    "spawner_minecart",
    "creeper",
    "skeleton",
    "spider",
    "giant",
    "zombie",
    "slime",
    "ghast",
    "zombie_pigman",
    "enderman",
    "cave_spider",
    "silverfish",
    "blaze",
    "magma_cube",
    "ender_dragon",
    "wither",
    "bat",
    "witch",
    "endermite",
    "guardian",
    "shulker",
    "pig",
    "sheep",
    "cow",
    "chicken",
    "squid",
    "wolf",
    "mooshroom",
    "snowman",
    "ocelot",
    "villager_golem",
    "horse",
    "rabbit",
    "polar_bear",
    "llama",
    "llama_spit",
    "parrot",
    "villager",
    "ender_crystal",
)

# Keyed by the naive plural (underscores replaced, "s" appended).
PLURAL_OVERRIDES: Mapping[str, str] = MappingProxyType(
    {
        "endermans": "endermen",
        "evocation fangss": "evocation fangs",
        "sheeps": "sheep",
        "vexs": "vexes",
        "snowmans": "snowmen",
        "wolfs": "wolves",
        "silverfishs": "silverfishes",
        "witchs": "witches",
        "tnts": "tnt",
        "rabbits": "rabbi",
    }
)


@dataclass(frozen=True)
class SelectorAlias:
    name: str
    doc: str
    aliases: tuple[str, ...]


SELECTOR_ALIASES: tuple[SelectorAlias, ...] = (
    SelectorAlias("e", "Targets all entities", ("all", "any", "entity", "entities")),
    SelectorAlias("a", "Targets all players", ("players", "everyone", "allplayers")),
    SelectorAlias("p", "Targets the nearest player", ("closest", "nearest", "player")),
    SelectorAlias("r", "Targets a random player (or entity if provided [type=?])", ("random",)),
    SelectorAlias("s", "Targets the executing entity", ("this", "self", "me")),
)

SELECTOR_PARAMS: Mapping[str, str] = MappingProxyType(
    {
        "gamemode": "Selects players set to the specified gamemode. "
        "Can be an index (like until 1.12) or gamemode name",
        "tag": "Selects entities with the specified tag",
        "tags": "Selects entities with the specified tag list inside [ ]",
    }
)


@dataclass(frozen=True)
class SelectorMemberDescriptor:
    name: str
    doc: str
    snippet: str | None = None
    insert: str | None = None
    usage: str | None = None
    params: Mapping[str, str] = field(default_factory=dict)


_ADVANCEMENT_PARAMS = {
    "mode": "One of only, from, until or all",
    "advancement": "Advancement id (omitted when mode is all)",
}

SELECTOR_MEMBERS: tuple[SelectorMemberDescriptor, ...] = (
    SelectorMemberDescriptor(
        "effect",
        "Adds / removes an effect from the entity",
        snippet="effect($1) $0",
        usage="effect(effect, seconds, amplifier, hideParticles)",
        params={
            "effect": "Effect id, or clear to remove every effect",
            "seconds": "Duration in seconds",
            "amplifier": "Effect level minus one",
            "hideParticles": "true to hide the effect particles",
        },
    ),
    SelectorMemberDescriptor(
        "grant",
        "Grants a player a specified advancement, a range of advancements or all.",
        snippet="grant(${1|only,from,until,all| $0})",
        usage="grant(mode advancement)",
        params=_ADVANCEMENT_PARAMS,
    ),
    SelectorMemberDescriptor(
        "revoke",
        "Removes from a player a specified advancement, a range of advancements or all.",
        snippet="revoke(${1|only,from,until,all| $0})",
        usage="revoke(mode advancement)",
        params=_ADVANCEMENT_PARAMS,
    ),
    SelectorMemberDescriptor(
        "clear",
        "Clears from the player inventory the spcified item",
        snippet="clear($0)",
        usage="clear(item, count)",
        params={"item": "Item id to remove", "count": "Maximum number of items to remove"},
    ),
    SelectorMemberDescriptor(
        "title",
        "Displays a title for a player",
        snippet="title($0)",
        usage="title(text)",
        params={"text": "JSON text component or string"},
    ),
    SelectorMemberDescriptor(
        "subtitle",
        "Displays a sub title for a player",
        snippet="subtitle($0)",
        usage="subtitle(text)",
        params={"text": "JSON text component or string"},
    ),
    SelectorMemberDescriptor(
        "action",
        "Displays a message above the player's hotbar",
        snippet="action($0)",
        usage="action(text)",
        params={"text": "JSON text component or string"},
    ),
    SelectorMemberDescriptor(
        "titleTimes",
        "Changes the title duration parameters (fade in, stay, fade out)",
        snippet="titleTimes(${1:10},${2:70},${3:20})",
        usage="titleTimes(fadeIn, stay, fadeOut)",
        params={
            "fadeIn": "Fade in time in ticks",
            "stay": "Display time in ticks",
            "fadeOut": "Fade out time in ticks",
        },
    ),
    SelectorMemberDescriptor("nbt", "Modifies or queries the entity's nbt data"),
    SelectorMemberDescriptor(
        "gamemode",
        "Changes the player's gamemode",
        snippet="gamemode = ${1|survival,creative,spectator,adventure|}",
    ),
    SelectorMemberDescriptor(
        "enchant",
        "Adds an enchantment to the tool the player is holding",
        snippet="enchant(${1|aqua_affinity,bane_of_arthropods,blast_protection,channeling,binding_curse,"
        "vanishing_curse,depth_strider,efficiency,feather_falling,fire_aspect,fire_protection,flame,fortune,"
        "frost_walker,impaling,infinity,knockback,looting,loyalty,luck_of_the_sea,lure,mending,multishot,"
        "piercing,power,projectile_protection,protection,punch,quick_charge,respiration,riptide,sharpness,"
        "silk_touch,smite,sweeping,thorns,unbreaking|})",
        usage="enchant(enchantment, level)",
        params={"enchantment": "Enchantment id", "level": "Enchantment level"},
    ),
    SelectorMemberDescriptor(
        "tag",
        "Adds a tag to an entity, to be targeted in a selector using @e[tag=<tag>]",
        snippet="tag($0)",
        usage="tag(name)",
        params={"name": "Tag to add"},
    ),
    SelectorMemberDescriptor(
        "untag",
        "Removes a tag from an entity",
        snippet="untag($0)",
        usage="untag(name)",
        params={"name": "Tag to remove"},
    ),
    SelectorMemberDescriptor("xp", "Adds, changes or queries the player's experience"),
    SelectorMemberDescriptor("spawn", "Sets the player's spawn point"),
    SelectorMemberDescriptor(
        "kill",
        "Removes the entity/s selected by this selector.",
        insert="kill()",
        usage="kill()",
    ),
    SelectorMemberDescriptor(
        "tp",
        "Teleports the entity to the specified location",
        snippet="tp($0)",
        usage="tp(destination, facing)",
        params={
            "destination": "Target selector or x y z coordinates",
            "facing": "Optional rotation or facing target",
        },
    ),
    SelectorMemberDescriptor(
        "tellraw",
        "Sends a formatted JSON message to the player",
        snippet="tellraw($0)",
        usage="tellraw(message)",
        params={"message": "JSON text component"},
    ),
    SelectorMemberDescriptor(
        "give",
        "Inserts an item to a player's inventory",
        snippet="give($0)",
        usage="give(item, count)",
        params={"item": "Item id, optionally with NBT", "count": "Number of items to give"},
    ),
)

MEMBERS_BY_NAME: Mapping[str, SelectorMemberDescriptor] = MappingProxyType(
    {member.name: member for member in SELECTOR_MEMBERS}
)
