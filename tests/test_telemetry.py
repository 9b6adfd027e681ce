import json
import random
import socket
import unittest
from queue import Queue

from ttt_board import key_to_board
from ttt_player import Player
from ttt_telemetry import (
    CallbackTelemetrySink,
    NullTelemetrySink,
    QueueTelemetrySink,
    TelemetryEnvelope,
    ThreadedTCPSink,
    emit_event,
    encode_envelope,
    parse_host_port,
)


class _CollectSink:
    def __init__(self) -> None:
        self.events: list[TelemetryEnvelope] = []

    def emit(self, envelope: TelemetryEnvelope) -> None:
        self.events.append(envelope)

    def close(self) -> None:
        return


class _BrokenSink:
    def emit(self, envelope: TelemetryEnvelope) -> None:
        raise RuntimeError("sink down")

    def close(self) -> None:
        return


class TestTelemetry(unittest.TestCase):
    def test_search_emits_start_and_end_events(self):
        sink = _CollectSink()
        player = Player(rng=random.Random(0), telemetry_sink=sink)
        move = player.get_best_move(key_to_board("xx.oo...."), maximizing=True)

        names = [event.event for event in sink.events]
        self.assertEqual(names, ["search_start", "search_end"])
        start = sink.events[0].data
        self.assertEqual(start["board_key"], "xx.oo....")
        self.assertTrue(start["maximizing"])
        self.assertEqual(start["max_depth"], -1)
        end = sink.events[1].data
        self.assertEqual(end["best_move"], move)
        self.assertEqual(end["score"], 99)
        self.assertEqual(end["tied_moves"], [2])
        self.assertEqual(end["nodes"], player.last_result.nodes)

    def test_score_moves_emits_nothing(self):
        sink = _CollectSink()
        Player(max_depth=1, telemetry_sink=sink).score_moves(key_to_board("........."))
        self.assertEqual(sink.events, [])

    def test_broken_sink_does_not_abort_search(self):
        player = Player(rng=random.Random(1), telemetry_sink=_BrokenSink())
        self.assertEqual(player.get_best_move(key_to_board("xx.oo...."), maximizing=True), 2)

    def test_queue_and_callback_sinks(self):
        queue: "Queue[TelemetryEnvelope]" = Queue()
        seen = []
        emit_event(QueueTelemetrySink(queue), "search_start", {"board_key": "........."})
        emit_event(CallbackTelemetrySink(seen.append), "search_end", {"best_move": 4})
        self.assertEqual(queue.get_nowait().data, {"board_key": "........."})
        self.assertEqual(seen[0].event, "search_end")
        emit_event(None, "ignored", {})

    def test_encode_envelope_is_one_json_line(self):
        line = encode_envelope(TelemetryEnvelope("search_end", 123, {"best_move": 4}))
        self.assertTrue(line.endswith(b"\n"))
        self.assertEqual(line.count(b"\n"), 1)
        self.assertEqual(
            json.loads(line.decode("utf-8")),
            {"event": "search_end", "ts_ms": 123, "data": {"best_move": 4}},
        )

    def test_player_defaults_to_null_sink(self):
        player = Player(rng=random.Random(2))
        self.assertIsInstance(player._telemetry_sink, NullTelemetrySink)
        self.assertEqual(player.get_best_move(key_to_board("xx.oo...."), maximizing=True), 2)

    def test_tcp_sink_delivers_every_envelope_before_close(self):
        server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        server.bind(("127.0.0.1", 0))
        server.listen(1)
        server.settimeout(5.0)
        host, port = server.getsockname()
        try:
            sink = ThreadedTCPSink(host, port)
            for i in range(5):
                sink.emit(TelemetryEnvelope("search_end", i, {"best_move": i}))
            sink.close()

            conn, _ = server.accept()
            conn.settimeout(5.0)
            chunks = []
            try:
                while True:
                    chunk = conn.recv(4096)
                    if not chunk:
                        break
                    chunks.append(chunk)
            finally:
                conn.close()
        finally:
            server.close()

        lines = b"".join(chunks).decode("utf-8").splitlines()
        self.assertEqual(len(lines), 5)
        self.assertEqual([json.loads(line)["data"]["best_move"] for line in lines], [0, 1, 2, 3, 4])

    def test_parse_host_port(self):
        self.assertEqual(parse_host_port("127.0.0.1:8765"), ("127.0.0.1", 8765))
        self.assertEqual(parse_host_port(" localhost:1 "), ("localhost", 1))
        for bad in ("", "localhost", ":80", "host:http", "host:0", "host:70000"):
            self.assertIsNone(parse_host_port(bad))


if __name__ == "__main__":
    unittest.main()
