"""scoring.py – Pairwise similarity between wasm functions.

A candidate is only considered when its signature (and, optionally, its
declared locals) match the input function exactly.  Survivors are scored by
comparing instructions index-for-index: the weight is the number of
equivalent positions divided by the longer instruction count.

Equivalence is exact equality except for the parts of a body that change
between a release build and its debug counterpart without changing what the
function is: call targets, and constants or store offsets that point into
static data.
"""

from __future__ import annotations

from collections.abc import Iterable

from wasm_remap.binary_loader import Function
from wasm_remap.instructions import Instruction
from wasm_remap.matcher.core import DataRegionIndex, Match, MatchOptions
from wasm_remap.opcodes import OP_I32_CONST


def _unsigned(insn: Instruction) -> int:
    return insn.immediates[0] & (0xFFFFFFFF if insn.opcode == OP_I32_CONST else 0xFFFFFFFFFFFFFFFF)


def instructions_match(
    left: Instruction,
    right: Instruction,
    options: MatchOptions,
    regions: DataRegionIndex,
) -> bool:
    """Return True if *left* and *right* are considered equivalent."""
    if left.opcode != right.opcode:
        return False
    if left.is_call or left.is_call_indirect:
        return True
    if options.ignore_constant_data_section_pointers:
        if left.is_store:
            # Store offsets only match through the data regions, never by value.
            return regions.contains_all(left.immediates[1], right.immediates[1])
        if left.is_int_const:
            if regions.contains_all(_unsigned(left), _unsigned(right)):
                return True
    return left == right


def signature_matches(input_func: Function, other: Function) -> bool:
    return (
        input_func.param_types == other.param_types
        and input_func.return_type == other.return_type
    )


def locals_match(input_func: Function, other: Function) -> bool:
    return input_func.local_types == other.local_types


def passes_gates(input_func: Function, other: Function, options: MatchOptions) -> bool:
    """Signature gate, then (if enabled) the exact-locals gate."""
    if not signature_matches(input_func, other):
        return False
    if options.require_exact_function_locals and not locals_match(input_func, other):
        return False
    return True


def match_weight(
    input_func: Function,
    other: Function,
    options: MatchOptions,
    regions: DataRegionIndex,
) -> float:
    """Similarity of *other* to *input_func* in [0, 1]; 0 when a gate rejects it."""
    if not passes_gates(input_func, other, options):
        return 0.0

    left, right = input_func.instructions, other.instructions
    max_instructions = max(len(left), len(right))
    if max_instructions == 0:
        return 0.0

    # Positions past the shorter body are never compared; they only widen
    # the denominator.
    matching = sum(1 for a, b in zip(left, right) if instructions_match(a, b, options, regions))
    return matching / max_instructions


def rank_matches(matches: Iterable[Match]) -> list[Match]:
    """Order matches best first (see :meth:`Match.rank_key`)."""
    return sorted(matches, key=Match.rank_key)


def find_matches(
    input_func: Function,
    candidates: Iterable[Function],
    options: MatchOptions,
    regions: DataRegionIndex,
) -> list[Match]:
    """Score every candidate that passes the gates, best first."""
    return rank_matches(
        Match(other, match_weight(input_func, other, options, regions))
        for other in candidates
        if passes_gates(input_func, other, options)
    )
