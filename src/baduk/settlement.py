"""
Final score of a Go game that ended by two passes.

Pure: takes the session and whatever the analysis engine said (possibly the neutral fallback) and produces
the per-colour breakdown. Running it again on the finished session returns the stored result unchanged.
"""

from src.baduk import clock
from src.baduk.board import stone_at
from src.baduk.scoring import AnalysisResult, PlayerScore, ScoreDetails, estimate_score
from src.baduk.session import GameSession
from src.core import config
from src.core.shared_types import GameMode, Player, WinReason


def settle(session: GameSession, analysis: AnalysisResult) -> AnalysisResult:
    if session.is_finished and session.analysis and session.analysis.score_details:
        return session.analysis

    if analysis.is_fallback:
        local = estimate_score(
            session.board, session.komi, session.captures.black, session.captures.white
        )
        analysis.black_territory = local.black_territory
        analysis.white_territory = local.white_territory
        analysis.dead_stones = local.dead_stones

    dead = {Player.BLACK: 0, Player.WHITE: 0}
    for point in analysis.dead_stones:
        owner = stone_at(session.board, point)
        if owner in dead:
            dead[owner] += 1

    details = ScoreDetails(
        black=_player_score(
            session, Player.BLACK, len(analysis.black_territory), dead[Player.WHITE]
        ),
        white=_player_score(
            session, Player.WHITE, len(analysis.white_territory), dead[Player.BLACK]
        ),
    )
    analysis.score_details = details
    session.analysis = analysis

    if details.black.total > details.white.total:
        winner = Player.BLACK
    elif details.white.total > details.black.total:
        winner = Player.WHITE
    else:
        winner = Player.NONE
    session.finish(winner, WinReason.SCORE)
    return analysis


def _player_score(
    session: GameSession, color: Player, territory: int, dead_opponent_stones: int
) -> PlayerScore:
    time_bonus = 0
    if session.has_mode(GameMode.SPEED) and clock.has_clock(session):
        time_bonus = int(
            session.clock.time_left[color] // config.TIME_BONUS_SECONDS_PER_POINT
        )
    score = PlayerScore(
        territory=territory,
        captures=session.captures[color],
        live_captures=session.captures[color],
        dead_stones=dead_opponent_stones,
        komi=session.komi if color == Player.WHITE else 0,
        base_stone_bonus=session.base_stone_captures[color]
        * config.BASE_STONE_BONUS_POINTS,
        hidden_stone_bonus=session.hidden_stone_captures[color]
        * config.HIDDEN_STONE_BONUS_POINTS,
        time_bonus=time_bonus,
        item_bonus=0,
    )
    score.recompute_total()
    return score
