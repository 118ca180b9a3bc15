"""Tests for JSON export and streaming load."""

import json

import pytest
import torch

from matchcut_align.core.types import DTYPE
from matchcut_align.processors.aligner import FaceAligner
from matchcut_align.processors.data_exporter import DataExporter
from matchcut_align.processors.data_loader import DataLoader
from matchcut_align.processors.streaming_json_reader import StreamingJSONReader

from helpers import IMAGE_SIZE, make_face


class TestDataExporter:
    def test_writes_valid_json_with_frame_count(self, tmp_path):
        path = tmp_path / "out.json"
        with DataExporter(path, {"width": 640, "height": 480, "frame_count": 99}) as exporter:
            exporter.write_item({"a": 1})
            exporter.write_item(None)
            exporter.write_item([1, 2, 3])

        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["frame_count"] == 3
        assert data["width"] == 640
        assert data["data"] == [{"a": 1}, None, [1, 2, 3]]

    def test_empty_export(self, tmp_path):
        path = tmp_path / "empty.json"
        with DataExporter(path):
            pass
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data == {"frame_count": 0, "data": []}

    def test_write_outside_context(self, tmp_path):
        with pytest.raises(RuntimeError):
            DataExporter(tmp_path / "x.json").write_item(1)


class TestDataLoader:
    def test_transforms_round_trip(self, tmp_path, frontal_face):
        aligner = FaceAligner()
        results = [aligner.align(frontal_face, IMAGE_SIZE, timestamp=0.0), None,
                   aligner.align(make_face(angle_degrees=3.0), IMAGE_SIZE, timestamp=1.0)]
        path = tmp_path / "transforms.json"
        with DataExporter(path, {"width": 640, "height": 480}) as exporter:
            for result in results:
                exporter.write_result(result)

        loaded = list(DataLoader.load_transforms(path))

        assert loaded[1] is None
        for original, restored in zip([results[0], results[2]], [loaded[0], loaded[2]]):
            assert restored.angle == pytest.approx(original.transform.angle)
            assert restored.scale == pytest.approx(original.transform.scale)
            assert torch.allclose(restored.translation, original.transform.translation)
            assert restored.confidence == pytest.approx(original.confidence)

        raw = list(DataLoader.load_transforms(path, raw=True))
        assert raw[2].angle == pytest.approx(results[2].raw_transform.angle)

    def test_load_landmarks_entry_forms(self, tmp_path):
        path = tmp_path / "landmarks.json"
        path.write_text(json.dumps({
            "width": 640,
            "height": 480,
            "source": "photos",
            "frame_count": 3,
            "data": [
                None,
                [[0.1, 0.2, 0.0], [0.3, 0.4, 0.0]],
                {"landmarks": [[0.5, 0.5]], "timestamp": 2.5, "detection_confidence": 0.4,
                 "image_size": [800, 600]},
            ],
        }), encoding="utf-8")

        frames, metadata = DataLoader.load_landmarks(path)
        frames = list(frames)

        assert metadata == {"width": 640, "height": 480, "source": "photos", "frame_count": 3}
        assert frames[0].landmarks is None
        assert frames[0].image_size == (640, 480)
        assert torch.allclose(frames[1].landmarks.points,
                              torch.tensor([[0.1, 0.2, 0.0], [0.3, 0.4, 0.0]], dtype=DTYPE))
        assert frames[2].timestamp == 2.5
        assert frames[2].image_size == (800, 600)
        assert frames[2].landmarks.detection_confidence == pytest.approx(0.4)

    def test_loaded_landmarks_feed_align_sequence(self, tmp_path, frontal_face):
        path = tmp_path / "landmarks.json"
        with DataExporter(path, {"width": IMAGE_SIZE[0], "height": IMAGE_SIZE[1]}) as exporter:
            exporter.write_item({"landmarks": frontal_face.points.tolist(), "timestamp": 0.0})
            exporter.write_item(None)

        frames, _ = DataLoader.load_landmarks(path)
        outcomes = list(FaceAligner().align_sequence(frames, IMAGE_SIZE))

        assert [o.ok for o in outcomes] == [True, False]


class TestStreamingJSONReader:
    def test_requires_context(self, tmp_path):
        path = tmp_path / "x.json"
        path.write_text('{"data": []}', encoding="utf-8")
        with pytest.raises(RuntimeError):
            list(StreamingJSONReader(path).read_items())

    def test_metadata_skips_nested_values(self, tmp_path):
        path = tmp_path / "x.json"
        path.write_text('{"fps": 29.97, "info": {"camera": "a"}, "ok": true, "data": [1]}', encoding="utf-8")
        with StreamingJSONReader(path) as reader:
            assert reader.get_metadata() == {"fps": 29.97, "ok": True}
            assert list(reader.read_items()) == [1]
