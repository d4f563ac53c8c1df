import logging, random
from typing import Dict, List, Optional, Sequence, Tuple
from cornhole.exceptions import ScoreValidationError, StructuralInconsistency
from cornhole.models import Group, Match, Player, Podium, generate_id

logger = logging.getLogger(__name__)

# Scoring

def _score_problem(score_a: Optional[int], score_b: Optional[int], target: int) -> Optional[Tuple[str, str]]:
    if score_a is None or score_b is None:
        return "missing_score", "Enter both scores"
    if score_a == score_b:
        return "draw_not_allowed", "No draws in cornhole"
    if max(score_a, score_b) != target:
        return "winner_score_mismatch", f"Winner must have exactly {target}"
    if min(score_a, score_b) >= target:
        return "loser_score_too_high", f"Loser must be below {target}"
    return None

def validate_score(score_a: Optional[int], score_b: Optional[int], target: int = 21) -> Optional[str]:
    """Return the reason a score pair is not a finished match, or None if it is."""
    problem = _score_problem(score_a, score_b, target)
    return problem[1] if problem else None

def check_score(score_a: Optional[int], score_b: Optional[int], target: int = 21) -> None:
    problem = _score_problem(score_a, score_b, target)
    if problem:
        raise ScoreValidationError(*problem)

# Scheduling

def is_power_of_two(n: int) -> bool:
    return n > 0 and n & (n - 1) == 0

def next_power_of_two(n: int) -> int:
    size = 1
    while size < n:
        size *= 2
    return size

def shuffled(items: Sequence, rng: Optional[random.Random] = None) -> list:
    """Uniformly shuffled copy of items; the input is left untouched."""
    rng = rng or random.Random()
    result = list(items)
    rng.shuffle(result)
    return result

def chunk(items: Sequence, size: int) -> list:
    return [list(items[i:i + size]) for i in range(0, len(items), size)]

def group_labels(count: int) -> List[str]:
    return [chr(ord("A") + i) for i in range(count)]

def schedule_round_robin(ids: Sequence[str]) -> List[Match]:
    """Six matches for a group of four: 1v2, 1v3, 1v4, 2v3, 2v4, 3v4."""
    if len(ids) != 4:
        raise ValueError(f"Round robin needs exactly 4 players, got {len(ids)}")
    p1, p2, p3, p4 = ids
    pairs = [(p1, p2), (p1, p3), (p1, p4), (p2, p3), (p2, p4), (p3, p4)]
    return [Match(id=generate_id(), a=a, b=b) for a, b in pairs]

def _pair_consecutive(ids: Sequence[str]) -> List[Match]:
    return [Match(id=generate_id(), a=ids[i], b=ids[i + 1]) for i in range(0, len(ids) - 1, 2)]

def _pair_with_byes(ids: Sequence[str]) -> List[Match]:
    """
    Pair ids into the next power-of-two round. When the field is short, the
    first ids get byes and the rest are paired consecutively.
    """
    match_count = next_power_of_two(len(ids)) // 2
    byes = 2 * match_count - len(ids)
    bye_matches = [Match(id=generate_id(), a=pid, b=None, completed=True) for pid in ids[:byes]]
    return bye_matches + _pair_consecutive(ids[byes:])

def build_single_elim_first_round(ids: Sequence[str], rng: Optional[random.Random] = None) -> List[Match]:
    """Random first-round pairing. The caller guarantees len(ids) is a power of two."""
    return _pair_consecutive(shuffled(ids, rng))

# Standings

def calculate_standings(group: Group, players: Dict[str, Player]) -> List[dict]:
    table = []
    for pid in group.players:
        player = players.get(pid)
        table.append({
            "id": pid,
            "name": player.name if player else "?",
            "P": 0, "W": 0, "L": 0, "PF": 0, "PA": 0, "PD": 0, "Pts": 0,
        })
    rows = {r["id"]: r for r in table}

    for m in group.matches:
        if not m.scored:
            continue
        a, b = rows[m.a], rows[m.b]
        for row, score_for, score_against in ((a, m.score_a, m.score_b), (b, m.score_b, m.score_a)):
            row["P"] += 1
            row["PF"] += score_for
            row["PA"] += score_against
            row["PD"] = row["PF"] - row["PA"]
        winner, loser = (a, b) if m.score_a > m.score_b else (b, a)
        winner["W"] += 1
        winner["Pts"] += 3
        loser["L"] += 1

    table.sort(key=lambda r: (-r["Pts"], -r["PD"], -r["PF"], r["name"]))
    for i, r in enumerate(table):
        r["rank"] = i + 1
    return table

def advancers(group: Group, players: Dict[str, Player]) -> Tuple[Optional[str], Optional[str]]:
    """Group winner and runner-up ids (None where the table is too short)."""
    table = calculate_standings(group, players)
    winner = table[0]["id"] if len(table) > 0 else None
    runner_up = table[1]["id"] if len(table) > 1 else None
    return winner, runner_up

# Knockout

def build_knockout(groups: Sequence[Group], players: Dict[str, Player]) -> List[Match]:
    """
    Cross-pair group advancers: A1 vs B2, B1 vs A2, C1 vs D2, ...
    Groups are taken in name order; a trailing unpaired group is dropped.
    """
    ordered = sorted(groups, key=lambda g: g.name)
    if len(ordered) % 2:
        logger.warning(f"Odd number of groups ({len(ordered)}), group {ordered[-1].name} gets no knockout match")

    pairings = []
    for g1, g2 in zip(ordered[0::2], ordered[1::2]):
        g1_winner, g1_runner = advancers(g1, players)
        g2_winner, g2_runner = advancers(g2, players)
        if g1_winner and g2_runner:
            pairings.append(Match(id=generate_id(), a=g1_winner, b=g2_runner))
        if g2_winner and g1_runner:
            pairings.append(Match(id=generate_id(), a=g2_winner, b=g1_runner))
    return pairings

def match_winner(match: Match) -> str:
    if match.bye:
        return match.a
    return match.a if match.score_a > match.score_b else match.b

def match_loser(match: Match) -> str:
    return match.b if match.score_a > match.score_b else match.a

def _losing_score(match: Match) -> int:
    return min(match.score_a, match.score_b)

def advance_round(matches: Sequence[Match]) -> Tuple[List[Match], Optional[str]]:
    """
    Resolve a finished knockout round.

    Returns ``(next_round, None)`` while more than one player is left, or
    ``([], champion_id)`` once the round produced a single winner.
    """
    if not matches:
        raise StructuralInconsistency("Cannot advance an empty round")
    if not all(m.decided for m in matches):
        raise StructuralInconsistency("Round is not complete yet")

    winners = [match_winner(m) for m in matches]
    if len(winners) == 1:
        return [], winners[0]
    return _pair_with_byes(winners), None

def round_name(match_count: int) -> str:
    if match_count == 1:
        return "Final"
    if match_count == 2:
        return "Semi-Finals"
    if match_count == 4:
        return "Quarter-Finals"
    return f"Round of {match_count * 2}"

# Podium

def get_podium(rounds: Sequence[Sequence[Match]], champion: Optional[str]) -> Podium:
    podium = Podium(gold=champion)
    if not rounds:
        return podium

    final_round = rounds[-1]
    if len(final_round) == 1 and final_round[0].scored:
        final = final_round[0]
        if final.a == champion:
            podium.silver = final.b
        elif final.b == champion:
            podium.silver = final.a
        else:
            podium.silver = match_loser(final)

    if len(rounds) >= 2:
        semis = rounds[-2]
        if len(semis) == 2 and all(m.scored for m in semis):
            first, second = semis
            # ties go to the second semifinal's loser
            bronze_match = first if _losing_score(first) > _losing_score(second) else second
            podium.bronze = match_loser(bronze_match)
    return podium
