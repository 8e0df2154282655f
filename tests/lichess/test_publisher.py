from __future__ import annotations

import logging
import threading
import unittest

from boardlink.errors import ChannelClosedError, OperationCancelledError, StreamDecodeError
from boardlink.lichess.schemas.board import ChatLine, GameFull, GameState
from boardlink.lichess.services.concurrency import CancelToken
from boardlink.lichess.services.publisher import BoardChannel, BoardUpdatePublisher
from tests.lichess.fakes import (
    FakeResponse,
    FakeTransport,
    game_full_record,
    game_state_record,
    ndjson_lines,
)

BOARD_PATH = "/api/board/game/stream/g1"


class BoardChannelTests(unittest.TestCase):
    def test_readers_drain_then_stop_after_close(self) -> None:
        channel: BoardChannel[int] = BoardChannel(maxsize=0, poll_interval=0.01)
        for value in (1, 2, 3):
            channel.send(value)
        channel.close()

        self.assertEqual(list(channel), [1, 2, 3])
        self.assertEqual(list(channel), [])

    def test_send_after_close_is_rejected(self) -> None:
        channel: BoardChannel[int] = BoardChannel(poll_interval=0.01, name="g1")
        channel.close()

        with self.assertRaises(ChannelClosedError):
            channel.send(1)

    def test_close_with_error_raises_after_remaining_records(self) -> None:
        channel: BoardChannel[int] = BoardChannel(maxsize=0, poll_interval=0.01)
        channel.send(1)
        channel.close(StreamDecodeError("board stream g1", 2, "malformed JSON"))
        received = []

        with self.assertRaises(StreamDecodeError):
            for value in channel:
                received.append(value)

        self.assertEqual(received, [1])

    def test_full_channel_blocks_sender_until_cancelled(self) -> None:
        channel: BoardChannel[int] = BoardChannel(maxsize=1, poll_interval=0.01)
        channel.send(1)
        cancel = CancelToken()
        timer = threading.Timer(0.05, cancel.cancel)
        timer.start()
        self.addCleanup(timer.cancel)

        with self.assertRaises(OperationCancelledError):
            channel.send(2, cancel)

    def test_receive_times_out_when_nothing_arrives(self) -> None:
        channel: BoardChannel[int] = BoardChannel(poll_interval=0.01)

        with self.assertRaises(TimeoutError):
            channel.receive(timeout=0.05)


class BoardUpdatePublisherTests(unittest.TestCase):
    def test_forwards_records_in_order_then_closes_channel(self) -> None:
        transport = FakeTransport(
            {BOARD_PATH: FakeResponse(ndjson_lines(game_full_record("g1"), game_state_record("e2e4")))}
        )
        channel = BoardChannel(maxsize=0, poll_interval=0.01)

        published = BoardUpdatePublisher(transport, "g1", channel).run()

        self.assertEqual(published, 2)
        self.assertTrue(channel.closed)
        self.assertIsNone(channel.error)
        records = list(channel)
        self.assertIsInstance(records[0], GameFull)
        self.assertEqual(records[0].id, "g1")
        self.assertIsInstance(records[1], GameState)
        self.assertEqual(records[1].moves, "e2e4")

    def test_background_publishing_applies_backpressure(self) -> None:
        lines = ndjson_lines(
            game_full_record("g1"),
            game_state_record("e2e4"),
            {"type": "chatLine", "username": "Rival", "text": "hf", "room": "player"},
            game_state_record("e2e4 e7e5", status="resign", winner="white"),
        )
        transport = FakeTransport({BOARD_PATH: FakeResponse(lines)})
        channel = BoardChannel(maxsize=1, poll_interval=0.01)

        future = BoardUpdatePublisher(transport, "g1", channel).start()
        records = list(channel.iter_updates())

        self.assertEqual(future.result(timeout=2), 4)
        self.assertEqual([record.type for record in records], ["gameFull", "gameState", "chatLine", "gameState"])
        self.assertIsInstance(records[2], ChatLine)
        self.assertEqual(records[3].winner, "white")

    def test_decode_error_fails_publishing_and_reaches_readers(self) -> None:
        lines = ndjson_lines(game_full_record("g1")) + [b"not json"]
        transport = FakeTransport({BOARD_PATH: FakeResponse(lines)})
        channel = BoardChannel(maxsize=0, poll_interval=0.01)

        with self.assertLogs("boardlink.lichess.services.publisher", level=logging.ERROR):
            future = BoardUpdatePublisher(transport, "g1", channel).start()
            with self.assertRaises(StreamDecodeError):
                future.result(timeout=2)

        received = []
        with self.assertRaises(StreamDecodeError):
            for record in channel:
                received.append(record)
        self.assertEqual(len(received), 1)

    def test_cancel_stops_an_open_board_stream(self) -> None:
        transport = FakeTransport({BOARD_PATH: FakeResponse(ndjson_lines(game_full_record("g1")), hold_open=True)})
        channel = BoardChannel(maxsize=0, poll_interval=0.01)
        cancel = CancelToken()

        future = BoardUpdatePublisher(transport, "g1", channel, cancel=cancel).start()
        first = channel.receive(timeout=2)
        cancel.cancel()

        self.assertIsInstance(first, GameFull)
        with self.assertRaises(OperationCancelledError):
            future.result(timeout=2)
        self.assertTrue(channel.closed)


if __name__ == "__main__":
    unittest.main()
