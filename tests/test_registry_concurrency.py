import tempfile
import threading
import unittest
from pathlib import Path

from fairdraw.db.engine import get_sessionmaker, make_engine
from fairdraw.lottery import DrawRegistry
from fairdraw.models import Base
from fairdraw.workflows import create_draw


class ConcurrentCreateDrawTests(unittest.TestCase):
    """Draw creation from several threads, each with its own session."""

    def setUp(self) -> None:
        self._tmpdir = tempfile.TemporaryDirectory()
        db_path = Path(self._tmpdir.name) / "draws.db"
        self.engine = make_engine(f"sqlite:///{db_path}")
        Base.metadata.create_all(self.engine)
        self.Session = get_sessionmaker(self.engine)

    def tearDown(self) -> None:
        self.engine.dispose()
        self._tmpdir.cleanup()

    def _create_in_threads(self, registries) -> tuple[list, list]:
        barrier = threading.Barrier(len(registries))
        ids: list[int] = []
        errors: list[BaseException] = []

        def worker(registry: DrawRegistry) -> None:
            try:
                barrier.wait()
                with self.Session.begin() as session:
                    ids.append(create_draw(session, 10, 10, "host", 0, registry=registry))
            except Exception as exc:  # reported by the assertions below
                errors.append(exc)

        threads = [threading.Thread(target=worker, args=(r,)) for r in registries]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=30)
        return ids, errors

    def test_shared_registry_hands_out_distinct_ids(self) -> None:
        registry = DrawRegistry()
        ids, errors = self._create_in_threads([registry, registry])
        self.assertEqual(errors, [])
        self.assertEqual(sorted(ids), [0, 1])

    def test_separate_registries_hand_out_distinct_ids(self) -> None:
        ids, errors = self._create_in_threads([DrawRegistry() for _ in range(4)])
        self.assertEqual(errors, [])
        self.assertEqual(sorted(ids), [0, 1, 2, 3])

        with self.Session() as session:
            self.assertEqual(create_draw(session, 10, 10, "host", 0, registry=DrawRegistry()), 4)
            session.commit()


if __name__ == "__main__":
    unittest.main()
