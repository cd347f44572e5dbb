"""Tests for CLI interface."""

import json
import os
import tempfile

from click.testing import CliRunner

from lenpack.cli import cli

USER = b"obj.4:28user2str.4:4nameJohnint.3:2age25"


def write_temp(data, suffix=".lp"):
    mode = "wb" if isinstance(data, bytes) else "w"
    with tempfile.NamedTemporaryFile(mode, suffix=suffix, delete=False) as f:
        f.write(data)
        return f.name


def describe_check_command():
    def reports_value_count(expect):
        input_file = write_temp(USER + b"nul.0:0")
        try:
            result = CliRunner().invoke(cli, ["check", "-i", input_file])
            expect(result.exit_code) == 0
            expect(result.output.strip()) == "OK (2 values)"
        finally:
            os.unlink(input_file)

    def reports_error_and_offset(expect):
        input_file = write_temp(b"obj.4:26user2str.4:4nameJohnint.3:2age25")
        try:
            result = CliRunner().invoke(cli, ["check", "-i", input_file])
            expect(result.exit_code) == 1
            expect("MismatchedLength at offset 40" in result.output) == True
        finally:
            os.unlink(input_file)

    def max_depth_override(expect):
        input_file = write_temp(USER)
        try:
            result = CliRunner().invoke(cli, ["check", "-i", input_file, "--max-depth", "0"])
            expect(result.exit_code) == 1
            expect("DepthExceeded at offset 0" in result.output) == True
        finally:
            os.unlink(input_file)

    def limits_file(expect):
        input_file = write_temp(USER)
        limits_file = write_temp(json.dumps({"max_total_input_size": 10}), suffix=".json")
        try:
            result = CliRunner().invoke(cli, ["check", "-i", input_file, "--limits", limits_file])
            expect(result.exit_code) == 1
            expect("ResourceLimitExceeded" in result.output) == True
        finally:
            os.unlink(input_file)
            os.unlink(limits_file)

    def debug_flag(expect):
        input_file = write_temp(b"int.1:1x1")
        try:
            result = CliRunner().invoke(cli, ["--debug", "check", "-i", input_file])
            expect(result.exit_code) == 0
            expect("OK (1 values)" in result.output) == True
        finally:
            os.unlink(input_file)

    def rejects_invalid_limits_file(expect):
        input_file = write_temp(USER)
        limits_file = write_temp(json.dumps({"max_nesting_depth": -1}), suffix=".json")
        try:
            result = CliRunner().invoke(cli, ["check", "-i", input_file, "--limits", limits_file])
            expect(result.exit_code) == 2
            expect("max_nesting_depth must be a non-negative integer" in result.output) == True
        finally:
            os.unlink(input_file)
            os.unlink(limits_file)

    def rejects_negative_max_depth(expect):
        input_file = write_temp(USER)
        try:
            result = CliRunner().invoke(cli, ["check", "-i", input_file, "--max-depth", "-1"])
            expect(result.exit_code) == 2
            expect("--max-depth" in result.output) == True
        finally:
            os.unlink(input_file)

    def rejects_malformed_limits_json(expect):
        limits_file = write_temp("{not json", suffix=".json")
        try:
            result = CliRunner().invoke(cli, ["limits", "--limits", limits_file])
            expect(result.exit_code) == 2
            expect("--limits" in result.output) == True
        finally:
            os.unlink(limits_file)

    def missing_input_option(expect):
        result = CliRunner().invoke(cli, ["check"])
        expect(result.exit_code) == 2


def describe_inspect_command():
    def prints_tree(expect):
        input_file = write_temp(USER)
        try:
            result = CliRunner().invoke(cli, ["inspect", "-i", input_file])
            expect(result.exit_code) == 0
            expect("obj 'user' (2)" in result.output) == True
            expect("str 'name' = 'John'" in result.output) == True
            expect("int 'age' = 25" in result.output) == True
        finally:
            os.unlink(input_file)

    def prints_error(expect):
        input_file = write_temp(b"xyz.1:1ab")
        try:
            result = CliRunner().invoke(cli, ["inspect", "-i", input_file])
            expect(result.exit_code) == 1
            expect("UnknownType at offset 0" in result.output) == True
        finally:
            os.unlink(input_file)


def describe_limits_command():
    def prints_json(expect):
        result = CliRunner().invoke(cli, ["limits", "--json"])
        expect(result.exit_code) == 0
        limits = json.loads(result.output)
        expect(limits["max_nesting_depth"]) == 64
        expect(limits["max_name_length"]) == 65535

    def prints_table(expect):
        result = CliRunner().invoke(cli, ["limits"])
        expect(result.exit_code) == 0
        expect("Limits" in result.output) == True
        expect("max_total_allocated_bytes" in result.output) == True

    def reads_limits_file(expect):
        limits_file = write_temp(json.dumps({"max_nesting_depth": 3}), suffix=".json")
        try:
            result = CliRunner().invoke(cli, ["limits", "--limits", limits_file, "--json"])
            expect(json.loads(result.output)["max_nesting_depth"]) == 3
        finally:
            os.unlink(limits_file)
