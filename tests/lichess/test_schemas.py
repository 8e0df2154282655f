from __future__ import annotations

import unittest

from pydantic import ValidationError

from boardlink.lichess.schemas.api import MoveRequest, SeekRequest
from boardlink.lichess.schemas.board import ChatLine, GameFull, GameState, OpponentGone, parse_board_message
from boardlink.lichess.schemas.events import ChallengeEvent, GameStartEvent, OtherEvent, parse_event
from tests.lichess.fakes import challenge_event, game_full_record, game_start_event


class EventSchemaTests(unittest.TestCase):
    def test_challenge_event_carries_challenger_and_variant(self) -> None:
        event = parse_event(challenge_event("c1", name="Magnus"))

        self.assertIsInstance(event, ChallengeEvent)
        self.assertEqual(event.challenge.challenger.name, "Magnus")
        self.assertEqual(event.challenge.challenger.lag, 4)
        self.assertEqual(event.challenge.variant.short, "Std")
        self.assertEqual(event.challenge.color, "random")

    def test_challenge_is_immutable(self) -> None:
        event = parse_event(challenge_event("c1"))

        with self.assertRaises(ValidationError):
            event.challenge.id = "other"

    def test_game_start_event_exposes_game_id(self) -> None:
        event = parse_event(game_start_event("g1", color="black"))

        self.assertIsInstance(event, GameStartEvent)
        self.assertEqual(event.game.id, "g1")
        self.assertEqual(event.game.color, "black")
        self.assertFalse(event.game.is_my_turn)
        self.assertEqual(event.game.opponent.username, "Rival")

    def test_unknown_event_types_are_kept_as_other(self) -> None:
        event = parse_event({"type": "gameFinish", "game": {"id": "g1"}})

        self.assertIsInstance(event, OtherEvent)
        self.assertEqual(event.type, "gameFinish")
        self.assertEqual(event.payload["game"]["id"], "g1")

    def test_event_without_type_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            parse_event({"game": {"id": "g1"}})
        with self.assertRaises(ValueError):
            parse_event(["gameStart"])

    def test_game_start_without_game_id_is_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            parse_event({"type": "gameStart", "game": {}})


class BoardSchemaTests(unittest.TestCase):
    def test_game_full_embeds_state(self) -> None:
        message = parse_board_message(game_full_record("g1", moves="e2e4 e7e5"))

        self.assertIsInstance(message, GameFull)
        self.assertEqual(message.clock.initial, 600000)
        self.assertEqual(message.initial_fen, "startpos")
        self.assertEqual(message.state.move_list, ["e2e4", "e7e5"])
        self.assertEqual(message.black.name, "Rival")

    def test_each_board_type_maps_to_its_model(self) -> None:
        self.assertIsInstance(parse_board_message({"type": "gameState", "moves": ""}), GameState)
        self.assertIsInstance(
            parse_board_message({"type": "chatLine", "username": "lichess", "text": "hi", "room": "player"}),
            ChatLine,
        )
        gone = parse_board_message({"type": "opponentGone", "gone": True, "claimWinInSeconds": 10})
        self.assertIsInstance(gone, OpponentGone)
        self.assertEqual(gone.claim_win_in_seconds, 10)

    def test_chat_text_keeps_surrounding_whitespace(self) -> None:
        message = parse_board_message({"type": "chatLine", "username": "Rival", "text": "  good game  ", "room": "player"})

        self.assertEqual(message.text, "  good game  ")
        self.assertEqual(message.model_dump(by_alias=True)["text"], "  good game  ")

    def test_unknown_board_type_is_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            parse_board_message({"type": "boardFlip"})


class RequestSchemaTests(unittest.TestCase):
    def test_seek_rejects_inverted_rating_range(self) -> None:
        with self.assertRaises(ValidationError):
            SeekRequest(ratingRange="1800-1500")

    def test_seek_rejects_malformed_rating_range(self) -> None:
        with self.assertRaises(ValidationError):
            SeekRequest(ratingRange="about 1500")

    def test_move_request_normalizes_uci(self) -> None:
        self.assertEqual(MoveRequest(uci="E7E8Q").uci, "e7e8q")


if __name__ == "__main__":
    unittest.main()
