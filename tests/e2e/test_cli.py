"""
End-to-end tests for the wordvec command line.

These tests exercise the complete flow:
1. A binary model is written to a temporary file
2. The CLI loads it through the config layer and ModelHolder
3. Queries run through the SimilarityEngine and are printed

No external dependencies - models are generated in the test.
"""

import json
import logging

import pytest

from wordvec.cli import EXIT_BAD_QUERY, EXIT_LOAD_FAILED, main


@pytest.fixture(autouse=True)
def isolated_cli(monkeypatch):
    """Clear WORDVEC_* variables and handlers the CLI attaches."""
    for name in ["WORDVEC_MODEL_PATH", "WORDVEC_TOP_K", "WORDVEC_MAX_DIMENSION", "WORDVEC_LOG_LEVEL"]:
        monkeypatch.delenv(name, raising=False)
    package_logger = logging.getLogger("wordvec")
    handlers, level = list(package_logger.handlers), package_logger.level
    package_logger.handlers = []
    yield
    package_logger.handlers = handlers
    package_logger.setLevel(level)


@pytest.mark.e2e
class TestCli:
    """End-to-end tests for CLI commands."""
    
    def test_info(self, royal_model_file, capsys):
        code = main(["--model", str(royal_model_file), "info"])
        
        out = capsys.readouterr().out
        assert code == 0
        assert "Vocabulary size:  4" in out
        assert "Dimension:        2" in out
        assert "Zero vectors:     0" in out
    
    def test_distance_prints_top_word(self, royal_model_file, capsys):
        code = main(["--model", str(royal_model_file), "distance", "king"])
        
        assert code == 0
        assert capsys.readouterr().out.strip() == "man"
    
    def test_distance_all(self, royal_model_file, capsys):
        code = main(["--model", str(royal_model_file), "distance", "king", "--all"])
        
        out = capsys.readouterr().out
        assert code == 0
        lines = [line.split()[0] for line in out.splitlines() if line and line.split()[0] in {"man", "queen", "woman"}]
        assert lines == ["man", "queen", "woman"]
    
    def test_analogy_json(self, royal_model_file, capsys):
        code = main(["--model", str(royal_model_file), "analogy", "man", "king", "woman", "--json"])
        
        data = json.loads(capsys.readouterr().out)
        assert code == 0
        assert data["mode"] == "analogy"
        assert [r["word"] for r in data["results"]] == ["queen"]
    
    def test_analogy_needs_three_words(self, royal_model_file, capsys):
        code = main(["--model", str(royal_model_file), "analogy", "man", "king"])
        
        assert code == EXIT_BAD_QUERY
        assert "3 WORDS!" in capsys.readouterr().err
    
    def test_analogy_quoted_query(self, royal_model_file, capsys):
        """Test that one argument holding all three words is split like the form field."""
        code = main(["--model", str(royal_model_file), "analogy", "man king woman"])
        
        assert code == 0
        assert capsys.readouterr().out.strip() == "queen"
    
    def test_analogy_quoted_query_wrong_count(self, royal_model_file, capsys):
        code = main(["--model", str(royal_model_file), "analogy", "man king", "woman queen"])
        
        assert code == EXIT_BAD_QUERY
        assert "3 WORDS!" in capsys.readouterr().err
    
    def test_distance_quoted_query(self, royal_model_file, capsys):
        code = main(["--model", str(royal_model_file), "distance", "king queen"])
        
        assert code == 0
        assert capsys.readouterr().out.strip() == "man"
    
    def test_analogy_unknown_word(self, royal_model_file, capsys):
        code = main(["--model", str(royal_model_file), "analogy", "man", "prince", "woman"])
        
        assert code == EXIT_BAD_QUERY
        assert "prince" in capsys.readouterr().err
    
    def test_k_option(self, royal_model_file, capsys):
        code = main(["--model", str(royal_model_file), "distance", "king", "-k", "1", "--json"])
        
        data = json.loads(capsys.readouterr().out)
        assert code == 0
        assert len(data["results"]) == 1
    
    def test_model_from_config(self, tmp_path, royal_model_file, capsys):
        config_path = tmp_path / "wordvec.yaml"
        config_path.write_text(
            f"model:\n  path: {royal_model_file.as_posix()}\nquery:\n  top_k: 2\n",
            encoding="utf-8",
        )
        
        code = main(["--config", str(config_path), "distance", "king", "--json"])
        
        data = json.loads(capsys.readouterr().out)
        assert code == 0
        assert [r["word"] for r in data["results"]] == ["man", "queen"]
    
    def test_malformed_model(self, tmp_path, capsys):
        path = tmp_path / "broken.bin"
        path.write_bytes(b"this is not a model\n")
        
        code = main(["--model", str(path), "distance", "king"])
        
        assert code == EXIT_LOAD_FAILED
        assert "Error:" in capsys.readouterr().err
    
    def test_missing_model(self, tmp_path, capsys):
        code = main(["--model", str(tmp_path / "absent.bin"), "info"])
        
        assert code == EXIT_LOAD_FAILED
    
    def test_no_model_configured(self, capsys):
        code = main(["info"])
        
        assert code == EXIT_LOAD_FAILED
        assert "No model file" in capsys.readouterr().err
    
    def test_export_text(self, tmp_path, royal_model_file, capsys):
        output = tmp_path / "vectors.txt"
        
        code = main(["--model", str(royal_model_file), "export-text", str(output), "--precision", "2"])
        
        lines = output.read_text(encoding="utf-8").splitlines()
        assert code == 0
        assert lines[0] == "4 2"
        assert lines[1] == "king 0.99 0.11"
