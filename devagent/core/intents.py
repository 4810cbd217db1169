"""Instruction classification and the code-generation escalation check."""

from __future__ import annotations

import re

from devagent.core.logging import get_logger
from devagent.core.state import Instruction

logger = get_logger("core.intents")

_DISPATCH: dict[str, Instruction] = {
    Instruction.ANALYZE_CODE.value: Instruction.ANALYZE_CODE,
    Instruction.REFACTOR.value: Instruction.REFACTOR,
    Instruction.GENERATE_TESTS.value: Instruction.GENERATE_TESTS,
    Instruction.GENERATE_CODE.value: Instruction.GENERATE_CODE,
}

# Action verbs only (no nouns such as "class" or "service"), with their
# French equivalents since the IDE panel is used in both languages.
ACTION_VERBS: tuple[str, ...] = (
    "create", "creates", "creating",
    "add", "adds", "adding",
    "write", "writes", "writing",
    "implement", "implements", "implementing",
    "develop", "develops", "developing",
    "generate", "generates", "generating",
    "crée", "créer", "créez", "cree", "creer",
    "ajoute", "ajouter", "ajoutez",
    "écris", "écrire", "écrivez", "ecris", "ecrire",
    "implémente", "implémenter", "implemente", "implementer",
    "développe", "développer", "developpe", "developper",
    "génère", "générer", "générez", "genere", "generer",
)

_ACTION_VERB_RE = re.compile(
    r"(?<!\w)(?:" + "|".join(re.escape(v) for v in sorted(ACTION_VERBS, key=len, reverse=True)) + r")(?!\w)",
    re.IGNORECASE,
)


def classify_instruction(instruction: str | None) -> Instruction:
    """Map the free-form instruction to a path. Exact, case-sensitive match."""
    path = _DISPATCH.get(instruction or "", Instruction.GENERAL)
    if path is Instruction.GENERAL and instruction and instruction != Instruction.GENERAL.value:
        logger.info("Unrecognised instruction '%s' - using general path", instruction[:40])
    return path


def find_action_verb(text: str) -> str | None:
    """Return the first action verb found in *text* (lower-cased), else None."""
    match = _ACTION_VERB_RE.search(text or "")
    return match.group(0).lower() if match else None


def requires_code_generation(user_message: str, guidance: str) -> bool:
    """Decide whether the general path escalates to the generation stage.

    Both the user's own message and the guidance text are checked; the user
    message is consulted first and the provenance of the match is logged.
    """
    verb = find_action_verb(user_message)
    if verb:
        logger.info("Escalating to code generation (verb '%s' in user message)", verb)
        return True
    verb = find_action_verb(guidance)
    if verb:
        logger.info("Escalating to code generation (verb '%s' in guidance)", verb)
        return True
    return False
