import logging, random
from typing import Dict, List, Optional, Sequence, Union
from cornhole.exceptions import SetupError, StructuralInconsistency, UnknownReference
from cornhole.functions import (
    advance_round, build_knockout, build_single_elim_first_round, calculate_standings,
    check_score, chunk, get_podium, group_labels, is_power_of_two, round_name,
    schedule_round_robin, shuffled, validate_score,
)
from cornhole.models import MODES, TARGETS, Group, Match, Player, Podium, Tournament, generate_id

logger = logging.getLogger(__name__)

MIN_GROUP_PLAYERS, MAX_PLAYERS = 8, 32
MIN_SINGLE_PLAYERS = 4


class TournamentController:
    """
    Owns one Tournament and applies the user commands to it, one at a time.

    Callers load the tournament, run a single command and persist the result;
    a command that raises leaves the tournament untouched.
    """

    def __init__(self, tournament: Optional[Tournament] = None, rng: Optional[random.Random] = None):
        self.tournament = tournament or Tournament()
        self.rng = rng or random.Random()
        self._reopen_invalid_matches()

    # Commands

    def setup(self, names: Sequence[str], mode: str, target: int, count: Optional[int] = None) -> Tournament:
        if mode not in MODES:
            raise SetupError(f"Unknown format '{mode}'")
        if target not in TARGETS:
            raise SetupError(f"Target score must be one of {', '.join(map(str, TARGETS))}")

        count = len(names) if count is None else count
        if mode == "groups" and (count % 4 != 0 or not MIN_GROUP_PLAYERS <= count <= MAX_PLAYERS):
            raise SetupError("For Groups → Knockout, player count must be a multiple of 4 between 8 and 32.")
        if mode == "single" and (not is_power_of_two(count) or not MIN_SINGLE_PLAYERS <= count <= MAX_PLAYERS):
            raise SetupError("For Single-Elimination, player count must be a power of two (4, 8, 16, 32).")

        slots = [str(n).strip() for n in names[:count]]
        slots += [""] * (count - len(slots))
        missing = [i for i, n in enumerate(slots) if not n]
        if missing:
            entered = count - len(missing)
            raise SetupError(f"Please enter {count} player names (you've entered {entered}).", missing)

        players = [
            Player(id=generate_id(), name=name, seed=i + 1)
            for i, name in enumerate(shuffled(slots, self.rng))
        ]
        t = Tournament(players=players, mode=mode, target=target)
        ids = [p.id for p in players]
        if mode == "groups":
            t.groups = [
                Group(name=label, players=chunk_ids, matches=schedule_round_robin(chunk_ids))
                for label, chunk_ids in zip(group_labels(count // 4), chunk(ids, 4))
            ]
            t.stage = "groups"
        else:
            t.rounds = [build_single_elim_first_round(ids, self.rng)]
            t.stage = "knockout"

        self.tournament = t
        logger.info(f"Tournament set up: {count} players, mode={mode}, target={target}")
        return t

    def submit_score(self, ref: Union[str, int], match_id: str,
                     score_a: Optional[int], score_b: Optional[int]) -> Match:
        """Record a score for a group match (ref = group name) or knockout match (ref = round index)."""
        if isinstance(ref, int):
            return self._submit_knockout_score(ref, match_id, score_a, score_b)
        return self._submit_group_score(ref, match_id, score_a, score_b)

    def advance_to_knockout(self) -> List[Match]:
        t = self.tournament
        if t.mode != "groups" or t.stage != "groups":
            raise StructuralInconsistency("Knockout can only be generated from the group stage")
        if not all(m.scored for g in t.groups for m in g.matches):
            raise StructuralInconsistency("All group matches must be completed first")

        pairings = build_knockout(t.groups, t.players_index())
        if not pairings:
            raise StructuralInconsistency("No knockout pairings (complete all groups)")
        t.rounds = [pairings]
        t.stage = "knockout"
        logger.info(f"Knockout generated: {round_name(len(pairings))}")
        return pairings

    def reset(self) -> Tournament:
        old = self.tournament
        self.tournament = Tournament(mode=old.mode, target=old.target)
        logger.info("Tournament reset")
        return self.tournament

    # Views

    def standings(self) -> Dict[str, List[dict]]:
        index = self.tournament.players_index()
        return {g.name: calculate_standings(g, index) for g in self.tournament.groups}

    def podium(self) -> Podium:
        return get_podium(self.tournament.rounds, self.tournament.champion)

    def progress(self) -> Dict[str, int]:
        matches = [m for g in self.tournament.groups for m in g.matches]
        return {"completed": sum(1 for m in matches if m.scored), "total": len(matches)}

    def snapshot(self) -> dict:
        t = self.tournament
        data = t.to_dict()
        data["standings"] = self.standings()
        data["progress"] = self.progress()
        data["round_names"] = [round_name(len(r)) for r in t.rounds]
        data["podium"] = vars(self.podium()) if t.champion else None
        return data

    # Internals

    def _reopen_invalid_matches(self) -> None:
        """Restored matches only count as completed if their scores pass for the target."""
        t = self.tournament
        matches = [m for g in t.groups for m in g.matches] + [m for rnd in t.rounds for m in rnd]
        for m in matches:
            if m.completed and not m.bye and validate_score(m.score_a, m.score_b, t.target):
                logger.warning(f"Match {m.id} has invalid score {m.score_a}-{m.score_b}, reopening it")
                m.completed = False

    def _find_match(self, matches: Sequence[Match], match_id: str) -> Match:
        match = next((m for m in matches if m.id == match_id), None)
        if match is None:
            raise UnknownReference(f"Match {match_id} not found")
        return match

    def _record(self, match: Match, score_a: Optional[int], score_b: Optional[int]) -> None:
        check_score(score_a, score_b, self.tournament.target)
        match.score_a = score_a
        match.score_b = score_b
        match.completed = True
        logger.debug(f"Match {match.id} recorded {score_a}-{score_b}")

    def _submit_group_score(self, group_name, match_id, score_a, score_b) -> Match:
        t = self.tournament
        group = next((g for g in t.groups if g.name == group_name), None)
        if group is None:
            raise UnknownReference(f"Group {group_name} not found")
        match = self._find_match(group.matches, match_id)
        if t.stage != "groups":
            raise StructuralInconsistency("Group stage is closed")
        self._record(match, score_a, score_b)
        return match

    def _submit_knockout_score(self, round_index, match_id, score_a, score_b) -> Match:
        t = self.tournament
        if not 0 <= round_index < len(t.rounds):
            raise UnknownReference(f"Round {round_index} not found")
        matches = t.rounds[round_index]
        match = self._find_match(matches, match_id)
        if t.stage != "knockout" or t.champion is not None:
            raise StructuralInconsistency("Knockout stage is not active")
        if round_index != len(t.rounds) - 1:
            raise StructuralInconsistency("This round has already been decided")
        if match.bye:
            raise StructuralInconsistency("A bye has no score")

        self._record(match, score_a, score_b)
        if all(m.decided for m in matches):
            next_round, champion = advance_round(matches)
            if champion:
                t.champion = champion
                t.stage = "champion"
                logger.info(f"Champion decided: {champion}")
            else:
                t.rounds.append(next_round)
                logger.info(f"{round_name(len(next_round))} generated")
        return match
