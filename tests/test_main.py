import sys
import os
import logging

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from main import main


class TestMain:
    def test_writes_snapshot_to_stdout(self, tmp_path, capsys):
        csv_file = tmp_path / "test.csv"
        csv_file.write_text('\n'.join([
            "type, client, tx, amount",
            "deposit, 2, 1, 2.0",
            "deposit, 1, 2, 1.0",
            "withdrawal, 1, 3, 0.25",
        ]))

        assert main([str(csv_file)]) == 0

        assert capsys.readouterr().out == (
            "client,available,held,total,locked\n"
            "1,0.7500,0.0000,0.7500,false\n"
            "2,2.0000,0.0000,2.0000,false\n"
        )

    def test_bad_records_do_not_change_exit_status(self, tmp_path, capsys, caplog):
        csv_file = tmp_path / "test.csv"
        csv_file.write_text('\n'.join([
            "type, client, tx, amount",
            "deposit, 1, 1,",
            "withdrawal, 1, 2, 5.0",
        ]))

        with caplog.at_level(logging.WARNING):
            assert main([str(csv_file)]) == 0

        assert capsys.readouterr().out == (
            "client,available,held,total,locked\n"
            "1,0.0000,0.0000,0.0000,false\n"
        )
        assert len(caplog.records) == 2

    def test_usage_error(self, capsys):
        assert main([]) == 1
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "Usage" in captured.err

    def test_too_many_arguments(self, capsys):
        assert main(["a.csv", "b.csv"]) == 1
        assert "Usage" in capsys.readouterr().err

    def test_missing_file(self, tmp_path, capsys, caplog):
        with caplog.at_level(logging.ERROR):
            assert main([str(tmp_path / "missing.csv")]) == 1

        assert capsys.readouterr().out == ""
        assert "Cannot read" in caplog.text

    def test_undecodable_row_skipped(self, tmp_path, capsys, caplog):
        csv_file = tmp_path / "test.csv"
        csv_file.write_bytes(
            b"type,client,tx,amount\n"
            b"deposit,1,1,1.0\n"
            b"deposit,2,2,\xff1.0\n"
            b"deposit,3,3,2.0\n"
        )

        with caplog.at_level(logging.WARNING):
            assert main([str(csv_file)]) == 0

        assert capsys.readouterr().out == (
            "client,available,held,total,locked\n"
            "1,1.0000,0.0000,1.0000,false\n"
            "3,2.0000,0.0000,2.0000,false\n"
        )
        assert "Skipping line 3" in caplog.text

    def test_byte_order_mark_before_header(self, tmp_path, capsys):
        csv_file = tmp_path / "test.csv"
        csv_file.write_bytes(b"\xef\xbb\xbftype,client,tx,amount\ndeposit,1,1,1.5\n")

        assert main([str(csv_file)]) == 0

        assert capsys.readouterr().out == (
            "client,available,held,total,locked\n"
            "1,1.5000,0.0000,1.5000,false\n"
        )

    def test_out_of_range_amount_skipped(self, tmp_path, capsys, caplog):
        csv_file = tmp_path / "test.csv"
        csv_file.write_text('\n'.join([
            "type, client, tx, amount",
            "deposit, 1, 1, 10000000000000000000000000",
            "deposit, 2, 2, 1.0",
        ]))

        with caplog.at_level(logging.WARNING):
            assert main([str(csv_file)]) == 0

        assert capsys.readouterr().out == (
            "client,available,held,total,locked\n"
            "2,1.0000,0.0000,1.0000,false\n"
        )
        assert "amount out of range" in caplog.text
