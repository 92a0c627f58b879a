"""
Tests for the snapshot-recording encryption pipeline.

Verifies:
- FIPS-197 C.1 known answer and stable intermediate snapshots
- Snapshot counts for compressed and full modes
- Snapshots never change after they are produced
- Length validation happens before any computation
- Trace records mirror the snapshots
"""

import copy
import io
import json
import secrets
from concurrent.futures import ThreadPoolExecutor

import pytest
from Crypto.Cipher import AES

from aes_visualizer import pipeline as pipeline_module
from aes_visualizer.aes_core import add_round_key, mix_columns, shift_rows, sub_bytes
from aes_visualizer.config import VisualizerConfig
from aes_visualizer.errors import InputLengthError
from aes_visualizer.key_schedule import key_expansion
from aes_visualizer.pipeline import (
    COMPRESSED_SNAPSHOT_COUNT,
    FULL_SNAPSHOT_COUNT,
    EncryptionPipeline,
    run,
)
from aes_visualizer.trace import TraceRecorder
from aes_visualizer.utils import bytes_to_state, hex_to_bytes


KAT_PT = hex_to_bytes("00112233445566778899aabbccddeeff")
KAT_KEY = hex_to_bytes("000102030405060708090a0b0c0d0e0f")
KAT_CT_HEX = "69c4e0d86a7b0430d8cdb78070b4c55a"

# FIPS-197 Appendix C.1 intermediate values
C1_EXPECTED = [
    (0, "Input", "00112233445566778899aabbccddeeff"),
    (0, "AddRoundKey", "00102030405060708090a0b0c0d0e0f0"),
    (1, "SubBytes", "63cab7040953d051cd60e0e7ba70e18c"),
    (1, "ShiftRows", "6353e08c0960e104cd70b751bacad0e7"),
    (1, "MixColumns", "5f72641557f5bc92f7be3b291db9f91a"),
    (1, "AddRoundKey", "89d810e8855ace682d1843d8cb128fe4"),
    (9, "RepeatedRounds", "bd6e7c3df2b5779e0b61216e8b10b689"),
    (10, "SubBytes", "7a9f102789d5f50b2beffd9f3dca4ea7"),
    (10, "ShiftRows", "7ad5fda789ef4e272bca100b3d9ff59f"),
    (10, "AddRoundKey", KAT_CT_HEX),
    (10, "Ciphertext", KAT_CT_HEX),
]


class TestKnownAnswer:
    """FIPS-197 Appendix C.1."""

    def test_ciphertext(self) -> None:
        result = run(KAT_PT, KAT_KEY)
        assert result.ciphertext_hex == KAT_CT_HEX

    def test_ciphertext_full_mode(self) -> None:
        result = run(KAT_PT, KAT_KEY, detail="full")
        assert result.ciphertext_hex == KAT_CT_HEX

    def test_intermediate_snapshots(self) -> None:
        result = run(KAT_PT, KAT_KEY)
        actual = [(s.round, s.operation, s.to_hex()) for s in result.snapshots]
        assert actual == C1_EXPECTED

    def test_ciphertext_base64(self) -> None:
        assert run(KAT_PT, KAT_KEY).ciphertext_base64 == "acTg2Gp7BDDYzbeAcLTFWg=="

    def test_matches_pycryptodome_on_random_inputs(self) -> None:
        for _ in range(50):
            key = secrets.token_bytes(16)
            pt = secrets.token_bytes(16)
            expected = AES.new(key, AES.MODE_ECB).encrypt(pt)
            assert run(pt, key).ciphertext == expected


class TestSnapshotLayout:
    def test_compressed_count(self) -> None:
        result = run(KAT_PT, KAT_KEY)
        assert COMPRESSED_SNAPSHOT_COUNT == 11
        assert len(result.snapshots) == COMPRESSED_SNAPSHOT_COUNT
        assert len(result) == 11

    def test_full_count(self) -> None:
        result = run(KAT_PT, KAT_KEY, detail="full")
        assert FULL_SNAPSHOT_COUNT == 42
        assert len(result.snapshots) == FULL_SNAPSHOT_COUNT

    def test_indices_are_sequential(self) -> None:
        for detail in ("compressed", "full"):
            result = run(KAT_PT, KAT_KEY, detail=detail)
            assert [s.index for s in result.snapshots] == list(range(len(result.snapshots)))

    def test_full_mode_has_every_round(self) -> None:
        result = run(KAT_PT, KAT_KEY, detail="full")
        ops = [(s.round, s.operation) for s in result.snapshots]
        for round_num in range(1, 10):
            for op in ("SubBytes", "ShiftRows", "MixColumns", "AddRoundKey"):
                assert (round_num, op) in ops
        assert all(op != "RepeatedRounds" for _, op in ops)
        assert (10, "MixColumns") not in ops

    def test_repeated_snapshot_equals_full_round9(self) -> None:
        compressed = run(KAT_PT, KAT_KEY)
        full = run(KAT_PT, KAT_KEY, detail="full")
        round9 = [s for s in full.snapshots if s.round == 9 and s.operation == "AddRoundKey"]
        assert compressed.snapshots[6].state == round9[0].state

    def test_full_round1_matches_compressed(self) -> None:
        compressed = run(KAT_PT, KAT_KEY)
        full = run(KAT_PT, KAT_KEY, detail="full")
        assert [s.state for s in compressed.snapshots[:6]] == \
            [s.state for s in full.snapshots[:6]]

    def test_labels(self) -> None:
        labels = [s.label for s in run(KAT_PT, KAT_KEY).snapshots]
        assert labels[0] == "Input state"
        assert labels[1] == "Round 0: AddRoundKey"
        assert labels[6] == "After rounds 2-9 (repeated)"
        assert labels[-1] == "Ciphertext"

    def test_unpacks_as_pair(self) -> None:
        snapshots, round_keys = run(KAT_PT, KAT_KEY)
        assert len(snapshots) == 11
        assert len(round_keys) == 11
        assert round_keys == key_expansion(KAT_KEY)

    def test_round_key_correlation(self) -> None:
        result = run(KAT_PT, KAT_KEY)
        assert result.round_key_for(0) is None
        assert result.round_key_for(1) == result.round_keys[0]
        assert result.round_key_for(5) == result.round_keys[1]
        assert result.round_key_for(9) == result.round_keys[10]
        assert result.round_key_for(2) is None

    def test_manual_recomputation(self) -> None:
        """Each recorded step equals the transform applied to the previous one."""
        result = run(KAT_PT, KAT_KEY, detail="full")
        transforms = {"SubBytes": sub_bytes, "ShiftRows": shift_rows, "MixColumns": mix_columns}
        snaps = result.snapshots
        for prev, snap in zip(snaps, snaps[1:]):
            if snap.operation == "AddRoundKey":
                expected = add_round_key(prev.state, result.round_keys[snap.round])
            elif snap.operation == "Ciphertext":
                expected = prev.matrix()
            else:
                expected = transforms[snap.operation](prev.state)
            assert snap.matrix() == expected


class TestSnapshotImmutability:
    def test_snapshots_unchanged_by_later_transforms(self) -> None:
        saved = []

        class SavingTracer(TraceRecorder):
            def record(self, **kwargs) -> None:
                saved.append(copy.deepcopy(kwargs["state"]))
                super().record(**kwargs)

        result = EncryptionPipeline(tracer=SavingTracer()).encrypt(KAT_PT, KAT_KEY)

        # Keep transforming the working state after the run
        state = result.snapshots[-1].matrix()
        for round_num in range(11):
            state = add_round_key(mix_columns(shift_rows(sub_bytes(state))),
                                  result.round_keys[round_num])
            state[0][0] ^= 0xff

        assert [s.state for s in result.snapshots] == saved

    def test_snapshot_state_is_read_only(self) -> None:
        snap = run(KAT_PT, KAT_KEY).snapshots[0]
        with pytest.raises(TypeError):
            snap.state[0][0] = 1  # type: ignore[index]

    def test_matrix_copies_are_independent(self) -> None:
        result = run(KAT_PT, KAT_KEY)
        matrix = result.snapshots[3].matrix()
        matrix[1][1] = 0
        states = result.states
        states[3][1][1] ^= 0xff
        assert result.snapshots[3].matrix() != states[3]

    def test_no_shared_rows_between_snapshots(self) -> None:
        snaps = run(KAT_PT, KAT_KEY).snapshots
        # AddRoundKey(10) and Ciphertext hold equal but separate copies
        assert snaps[-1].state == snaps[-2].state
        assert snaps[-1].state is not snaps[-2].state

    def test_separate_runs_share_nothing(self) -> None:
        first = run(KAT_PT, KAT_KEY)
        second = run(KAT_PT, KAT_KEY)
        assert first.snapshots == second.snapshots
        assert all(a.state is not b.state for a, b in zip(first.snapshots, second.snapshots))


class TestLengthValidation:
    @pytest.mark.parametrize("length", [15, 17])
    def test_bad_plaintext(self, length: int) -> None:
        with pytest.raises(InputLengthError, match="Plaintext must be 16 bytes"):
            run(bytes(length), KAT_KEY)

    @pytest.mark.parametrize("length", [15, 17])
    def test_bad_key(self, length: int) -> None:
        with pytest.raises(InputLengthError, match="Key must be 16 bytes"):
            run(KAT_PT, bytes(length))

    def test_nothing_computed(self, monkeypatch) -> None:
        def fail(*args, **kwargs):
            raise AssertionError("key expansion must not run")

        monkeypatch.setattr(pipeline_module, "key_expansion", fail)
        tracer = TraceRecorder()
        with pytest.raises(InputLengthError):
            EncryptionPipeline(tracer=tracer).encrypt(KAT_PT, bytes(17))
        with pytest.raises(InputLengthError):
            EncryptionPipeline(tracer=tracer).encrypt(bytes(15), KAT_KEY)
        assert tracer.get_records() == []


class TestTracing:
    def test_one_record_per_snapshot(self) -> None:
        tracer = TraceRecorder()
        result = EncryptionPipeline(tracer=tracer).encrypt(KAT_PT, KAT_KEY)
        records = tracer.get_records()
        assert len(records) == len(result.snapshots)
        assert [r["operation"] for r in records] == [s.operation for s in result.snapshots]

    def test_round_key_on_add_round_key_records(self) -> None:
        tracer = TraceRecorder()
        result = EncryptionPipeline(tracer=tracer).encrypt(KAT_PT, KAT_KEY)
        for record in tracer.get_records():
            if record["operation"] == "AddRoundKey":
                assert [list(r) for r in record["round_key"]] == \
                    result.round_keys[record["round"]]
            else:
                assert "round_key" not in record

    def test_jsonl_trace(self) -> None:
        buf = io.StringIO()
        tracer = TraceRecorder(trace_file=buf)
        EncryptionPipeline(VisualizerConfig(snapshot_detail="full"), tracer).encrypt(KAT_PT, KAT_KEY)
        lines = buf.getvalue().strip().splitlines()
        assert len(lines) == FULL_SNAPSHOT_COUNT
        first = json.loads(lines[0])
        assert first["operation"] == "Input"
        assert first["state"] == bytes_to_state(KAT_PT)

    def test_verbose_output(self, capsys) -> None:
        EncryptionPipeline(tracer=TraceRecorder(verbose=True)).encrypt(KAT_PT, KAT_KEY)
        out = capsys.readouterr().out
        assert "S00 R0" in out
        assert f"STATE:{KAT_CT_HEX}" in out
        assert "(initial)" in out


class TestConcurrency:
    def test_shared_pipeline_across_threads(self) -> None:
        pipeline = EncryptionPipeline()
        inputs = [(secrets.token_bytes(16), secrets.token_bytes(16)) for _ in range(32)]

        with ThreadPoolExecutor(max_workers=8) as executor:
            results = list(executor.map(lambda kp: pipeline.encrypt(kp[1], kp[0]), inputs))

        for (key, pt), result in zip(inputs, results):
            assert result.ciphertext == AES.new(key, AES.MODE_ECB).encrypt(pt)
            assert len(result.snapshots) == COMPRESSED_SNAPSHOT_COUNT
