"""
Tests for file loaders, writers and the command-line interface.
"""

import json

import pandas as pd
import pytest

from grnconsensus.cli import main
from grnconsensus.io import load_expression, load_regulators, write_edge_list


@pytest.fixture()
def expression_csv(tmp_path, expression_df):
    path = tmp_path / "expr.csv"
    expression_df.to_csv(path)
    return path


@pytest.fixture()
def regulators_txt(tmp_path, regulators):
    path = tmp_path / "tfs.txt"
    path.write_text("# transcription factors\n" + "\n".join(regulators) + "\n")
    return path


class TestLoaders:

    def test_load_csv(self, expression_csv, expression_df):
        matrix = load_expression(expression_csv)
        assert matrix.shape == expression_df.shape
        assert list(matrix.gene_ids) == list(expression_df.index)

    def test_load_tsv(self, tmp_path, expression_df):
        path = tmp_path / "expr.tsv"
        expression_df.to_csv(path, sep="\t")
        assert load_expression(path).shape == expression_df.shape

    def test_duplicate_genes_keep_first(self, tmp_path, expression_df):
        path = tmp_path / "dup.csv"
        pd.concat([expression_df, expression_df.iloc[:2]]).to_csv(path)

        with pytest.warns(UserWarning, match="duplicate gene IDs"):
            matrix = load_expression(path)

        assert matrix.n_genes == len(expression_df)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_expression(tmp_path / "absent.csv")

    def test_non_numeric_values(self, tmp_path):
        path = tmp_path / "bad.csv"
        path.write_text(",s1,s2,s3\ng1,1,2,abc\ng2,4,5,6\n")
        with pytest.raises(ValueError):
            load_expression(path)

    def test_regulators_from_text(self, regulators_txt, regulators):
        assert load_regulators(regulators_txt) == regulators

    def test_regulators_deduplicated(self, tmp_path):
        path = tmp_path / "tfs.txt"
        path.write_text("TF_01\nTF_02\n\nTF_01\n")
        assert load_regulators(path) == ["TF_01", "TF_02"]

    def test_regulators_from_table(self, tmp_path):
        path = tmp_path / "tfs.csv"
        pd.DataFrame({"gene": ["TF_03", "TF_04"], "family": ["bZIP", "MYB"]}).to_csv(path, index=False)
        assert load_regulators(path) == ["TF_03", "TF_04"]

    def test_empty_regulator_file(self, tmp_path):
        path = tmp_path / "none.txt"
        path.write_text("# nothing here\n")
        with pytest.raises(ValueError, match="No regulator"):
            load_regulators(path)

    def test_write_edge_list_creates_directories(self, tmp_path):
        edges = pd.DataFrame({"Regulator": ["A"], "Target": ["B"], "Score": [1.0]})
        path = write_edge_list(edges, tmp_path / "out" / "edges.tsv")
        pd.testing.assert_frame_equal(pd.read_csv(path, sep="\t"), edges)


class TestCommandLine:

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 0
        assert "infer" in capsys.readouterr().out

    def test_infer_writes_outputs(self, tmp_path, expression_csv, regulators_txt):
        out = tmp_path / "results"
        code = main([
            "infer", "--input", str(expression_csv), "--regulators", str(regulators_txt),
            "--methods", "clr", "aracne", "--n-steps", "5", "--sequential",
            "--output", str(out),
        ])

        assert code == 0
        for name in ("consensus.csv", "network.csv", "fit_history.csv", "manifest.json"):
            assert (out / name).exists()

        manifest = json.loads((out / "manifest.json").read_text())
        assert manifest["scorers_succeeded"] == ["aracne", "clr"]
        network = pd.read_csv(out / "network.csv")
        assert len(network) == manifest["n_edges"]

    def test_infer_with_config(self, tmp_path, expression_csv, regulators_txt):
        config = tmp_path / "grn.yaml"
        config.write_text(
            f"input: {expression_csv}\n"
            f"regulators: {regulators_txt}\n"
            "adapters: [clr]\n"
            "quantile_steps: 3\n"
        )
        out = tmp_path / "from_config"

        assert main(["infer", "--config", str(config), "--output", str(out)]) == 0

        manifest = json.loads((out / "manifest.json").read_text())
        assert manifest["scorers_succeeded"] == ["clr"]
        assert manifest["config"]["quantile_steps"] == 3

    def test_infer_requires_input(self, capsys):
        assert main(["infer", "--regulators", "tfs.txt"]) == 1
        assert "--input is required" in capsys.readouterr().out

    def test_infer_reports_invalid_regulators(self, tmp_path, expression_csv, capsys):
        tfs = tmp_path / "unknown.txt"
        tfs.write_text("NOT_A_GENE\n")

        code = main(["infer", "--input", str(expression_csv), "--regulators", str(tfs),
                     "--methods", "clr", "--output", str(tmp_path / "x")])

        assert code == 1
        assert "Inference failed" in capsys.readouterr().out

    def test_sft(self, tmp_path, scale_free_edges, capsys):
        path = tmp_path / "edges.csv"
        scale_free_edges.to_csv(path, index=False)

        assert main(["sft", "--input", str(path)]) == 0
        out = capsys.readouterr().out
        assert "scale-free topology" in out
        assert "exponent" in out

    def test_sft_correlation_matrix(self, tmp_path, capsys):
        # |r| >= 0.5 keeps a-b, a-c, a-d, a-e, a-f, b-c, b-d, c-d: degrees 5, 3, 3, 3, 1, 1
        genes = list("abcdef")
        strong = {("a", "b"), ("a", "c"), ("a", "d"), ("a", "e"), ("a", "f"),
                  ("b", "c"), ("b", "d"), ("c", "d")}
        matrix = pd.DataFrame(0.1, index=genes, columns=genes)
        for g1, g2 in strong:
            matrix.loc[g1, g2] = matrix.loc[g2, g1] = 0.8
        for g in genes:
            matrix.loc[g, g] = 1.0
        path = tmp_path / "cor.csv"
        matrix.to_csv(path)

        code = main(["sft", "--input", str(path), "--matrix", "--min-weight", "0.5",
                     "--net-type", "gcn"])

        assert code == 0
        assert "n_tail" in capsys.readouterr().out

    def test_sft_degenerate(self, tmp_path, capsys):
        path = tmp_path / "flat.csv"
        pd.DataFrame({"Regulator": ["A", "B"], "Target": ["X", "Y"]}).to_csv(path, index=False)

        assert main(["sft", "--input", str(path)]) == 1
        assert "Cannot fit" in capsys.readouterr().out

    def test_hubs(self, tmp_path, scale_free_edges):
        path = tmp_path / "edges.csv"
        scale_free_edges.to_csv(path, index=False)
        out = tmp_path / "hubs.csv"

        assert main(["hubs", "--input", str(path), "--top-n", "5", "--output", str(out)]) == 0

        hubs = pd.read_csv(out)
        assert list(hubs.columns) == ["Gene", "Degree"]
        assert len(hubs) == 5
        assert hubs["Degree"].is_monotonic_decreasing
