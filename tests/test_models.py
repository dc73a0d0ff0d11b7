import unittest

from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from fairdraw.lottery import make_commitment
from fairdraw.models import DRAW_COUNTER, Base, Draw, DrawEntry, DrawPhase, IdCounter


class DBTestCase(unittest.TestCase):
    def setUp(self):
        # In-memory SQLite for isolation
        self.engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
        Base.metadata.create_all(self.engine)
        self.Session = sessionmaker(
            bind=self.engine, future=True, expire_on_commit=False
        )

    def tearDown(self):
        self.engine.dispose()

    def _draw(self, draw_id: int = 0) -> Draw:
        return Draw(
            id=draw_id,
            creator="creator",
            commit_window_end=100,
            reveal_window_end=200,
            created_at=0,
        )

    def test_draw_get(self):
        with self.Session() as session:
            session.add(self._draw(0))
            session.commit()

            found = Draw.get(session, 0)
            self.assertIsNotNone(found)
            assert found is not None
            self.assertEqual(found.creator, "creator")
            self.assertIsNone(Draw.get(session, 1))

    def test_window_order_constraint(self):
        with self.Session() as session:
            draw = self._draw()
            draw.reveal_window_end = draw.commit_window_end
            session.add(draw)
            with self.assertRaises(IntegrityError):
                session.flush()

    def test_phase_transitions(self):
        draw = self._draw()
        self.assertEqual(draw.phase(0), DrawPhase.COMMIT)
        self.assertEqual(draw.phase(100), DrawPhase.COMMIT)
        self.assertEqual(draw.phase(101), DrawPhase.REVEAL)
        self.assertEqual(draw.phase(200), DrawPhase.REVEAL)
        self.assertEqual(draw.phase(201), DrawPhase.AWAITING_FINALIZATION)
        draw.finalized = True
        self.assertEqual(draw.phase(50), DrawPhase.FINALIZED)

    def test_entries_keep_commit_order(self):
        with self.Session() as session:
            draw = self._draw()
            session.add(draw)
            for idx, name in enumerate(["zed", "amy", "kim"]):
                draw.entries.append(
                    DrawEntry(
                        participant=name,
                        entry_index=idx,
                        commitment=make_commitment(idx),
                        committed_at=idx,
                    )
                )
            session.commit()

        with self.Session() as session:
            reloaded = Draw.get(session, 0)
            assert reloaded is not None
            self.assertEqual(reloaded.entrants, ["zed", "amy", "kim"])
            self.assertEqual(reloaded.revealed_order, [])
            entry = reloaded.entry_for("amy")
            assert entry is not None
            self.assertEqual(entry.entry_index, 1)
            self.assertIsNone(reloaded.entry_for("bob"))

    def test_duplicate_participant_constraint(self):
        with self.Session() as session:
            draw = self._draw()
            session.add(draw)
            draw.entries.append(
                DrawEntry(participant="a", entry_index=0, commitment=make_commitment(1), committed_at=1)
            )
            draw.entries.append(
                DrawEntry(participant="a", entry_index=1, commitment=make_commitment(2), committed_at=2)
            )
            with self.assertRaises(IntegrityError):
                session.flush()

    def test_commitment_is_normalized_and_immutable(self):
        entry = DrawEntry(
            participant="a",
            entry_index=0,
            commitment="0X" + make_commitment(1).upper(),
            committed_at=1,
        )
        self.assertEqual(entry.commitment, make_commitment(1))
        entry.commitment = make_commitment(1).upper()
        with self.assertRaises(ValueError):
            entry.commitment = make_commitment(2)
        self.assertEqual(entry.commitment, make_commitment(1))

    def test_secret_requires_reveal_index(self):
        with self.Session() as session:
            draw = self._draw()
            session.add(draw)
            entry = DrawEntry(
                participant="a", entry_index=0, commitment=make_commitment(1), committed_at=1
            )
            draw.entries.append(entry)
            session.flush()
            entry.secret = (1).to_bytes(32, "big").hex()
            with self.assertRaises(IntegrityError):
                session.flush()

    def test_to_json(self):
        draw = self._draw()
        entry = DrawEntry(
            participant="a", entry_index=0, commitment=make_commitment(3), committed_at=5
        )
        draw.entries.append(entry)
        entry.secret = (3).to_bytes(32, "big").hex()
        entry.reveal_index = 0
        data = draw.to_json()
        self.assertEqual(data["id"], 0)
        self.assertEqual(data["entrants"], ["a"])
        self.assertEqual(data["revealed_order"], ["a"])
        self.assertEqual(data["commitments"], {"a": make_commitment(3)})
        self.assertEqual(data["created_at_iso"], "1970-01-01T00:00:00+00:00")
        self.assertFalse(data["finalized"])
        self.assertIsNone(data["winner"])

    def test_draw_counter_is_seeded_on_create_all(self):
        with self.Session() as session:
            counter = session.get(IdCounter, DRAW_COUNTER)
            assert counter is not None
            self.assertEqual(counter.next_id, 0)


if __name__ == "__main__":
    unittest.main()
