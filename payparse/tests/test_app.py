"""
Tests for the command-line interface.
"""
import pytest
from typer.testing import CliRunner

from ..app import app
from ..models.schema import ChatParseResult

runner = CliRunner()


@pytest.fixture
def transcript_file(tmp_path, sample_transcript):
    path = tmp_path / "chat.txt"
    path.write_text(sample_transcript, encoding="utf-8")
    return path


class TestCommands:

    def test_chat_writes_json(self, tmp_path, transcript_file):
        output = tmp_path / "result.json"
        result = runner.invoke(app, ["chat", str(transcript_file), "--out", str(output)])

        assert result.exit_code == 0
        parsed = ChatParseResult.model_validate_json(output.read_text(encoding="utf-8"))
        assert len(parsed.records) == 3
        assert parsed.skipped == 4

        validated = runner.invoke(app, ["validate", str(output)])
        assert validated.exit_code == 0
        assert "Records: 3" in validated.output

    def test_receipt(self, tmp_path):
        ocr_text = tmp_path / "receipt1.txt"
        ocr_text.write_text("Coffee\n$4.50\n", encoding="utf-8")
        output = tmp_path / "records.json"

        result = runner.invoke(app, [
            "receipt", str(ocr_text), "--image", "receipt1.jpg",
            "--confidence", "90", "--out", str(output),
        ])
        assert result.exit_code == 0
        assert '"source_image_ref": "receipt1.jpg"' in output.read_text(encoding="utf-8")

    def test_receipt_output_validates(self, tmp_path):
        ocr_text = tmp_path / "receipt1.txt"
        ocr_text.write_text("Coffee\n$4.50\nTotal $4.50\n", encoding="utf-8")
        output = tmp_path / "records.json"

        assert runner.invoke(app, ["receipt", str(ocr_text), "--out", str(output)]).exit_code == 0

        validated = runner.invoke(app, ["validate", str(output)])
        assert validated.exit_code == 0
        assert "Records: 2" in validated.output

    def test_receipt_matches_transcript_attachment(self, tmp_path, transcript_file):
        ocr_text = tmp_path / "receipt.txt"
        ocr_text.write_text("Petrol R300\n", encoding="utf-8")
        output = tmp_path / "records.json"

        result = runner.invoke(app, [
            "receipt", str(ocr_text), "--image", "IMG-20240315-WA0002.jpeg",
            "--transcript", str(transcript_file), "--out", str(output),
        ])
        assert result.exit_code == 0
        assert '"source_image_ref": "IMG-20240315-WA0002.jpg"' in output.read_text(encoding="utf-8")

    def test_receipt_match_threshold_from_config(self, tmp_path, transcript_file):
        ocr_text = tmp_path / "receipt.txt"
        ocr_text.write_text("Petrol R300\n", encoding="utf-8")
        strict = tmp_path / "strict.yaml"
        strict.write_text("attachment_match_threshold: 99\n", encoding="utf-8")
        output = tmp_path / "records.json"

        result = runner.invoke(app, [
            "receipt", str(ocr_text), "--image", "IMG-20240315-WA0002.jpeg",
            "--transcript", str(transcript_file), "--config", str(strict), "--out", str(output),
        ])
        assert result.exit_code == 0
        assert '"source_image_ref": "IMG-20240315-WA0002.jpeg"' in output.read_text(encoding="utf-8")

    def test_attachments(self, transcript_file):
        result = runner.invoke(app, ["attachments", str(transcript_file)])
        assert result.exit_code == 0
        assert "IMG-20240314-WA0001.jpg" in result.output
        assert "IMG-20240315-WA0002.jpg" in result.output

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ["chat", str(tmp_path / "missing.txt")])
        assert result.exit_code == 1

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text('{"records": "nope"}', encoding="utf-8")
        result = runner.invoke(app, ["validate", str(path)])
        assert result.exit_code == 1
