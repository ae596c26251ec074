#!/usr/bin/env python3
import unittest

from pipeshell.ast_tree import Command, OutputMode, OutputRedirect, Pipeline
from pipeshell.errors import (
    MissingCommandError,
    MissingRedirectTargetError,
    ParseError,
    ParseErrorKind,
    TooManyPipesError,
    TooManyTokensError,
)
from pipeshell.parser import parse


class TestParser(unittest.TestCase):
    def test_01_simple_command(self):
        pipeline = parse("ls")
        self.assertEqual(len(pipeline), 1)
        self.assertEqual(pipeline[0].arguments, ["ls"])
        self.assertIsNone(pipeline[0].input_redirect)
        self.assertIsNone(pipeline[0].output_redirect)
        self.assertFalse(pipeline[0].background)

    def test_02_command_with_args(self):
        pipeline = parse("ls -la /tmp")
        self.assertEqual(len(pipeline), 1)
        self.assertEqual(pipeline[0].argv, ["ls", "-la", "/tmp"])

    def test_03_pipeline(self):
        pipeline = parse("ls | grep test")
        self.assertEqual([cmd.arguments for cmd in pipeline], [["ls"], ["grep", "test"]])

    def test_04_k_pipes_give_k_plus_one_stages(self):
        for k in range(0, 6):
            line = " | ".join(f"cmd{i} arg" for i in range(k + 1))
            self.assertEqual(len(parse(line)), k + 1, line)

    def test_05_input_redirection(self):
        cmd = parse("cat < input.txt")[0]
        self.assertEqual(cmd.arguments, ["cat"])
        self.assertEqual(cmd.input_redirect, "input.txt")
        self.assertIsNone(cmd.output_redirect)

    def test_06_output_redirection_truncates(self):
        cmd = parse("ls > output.txt")[0]
        self.assertEqual(cmd.output_redirect, OutputRedirect("output.txt", OutputMode.TRUNCATE))

    def test_07_append_redirection(self):
        cmd = parse("echo hello >> log.txt")[0]
        self.assertEqual(cmd.arguments, ["echo", "hello"])
        self.assertEqual(cmd.output_redirect, OutputRedirect("log.txt", OutputMode.APPEND))

    def test_08_background(self):
        pipeline = parse("sleep 5 &")
        self.assertEqual(len(pipeline), 1)
        self.assertTrue(pipeline[0].background)
        self.assertTrue(pipeline.background)

    def test_09_background_drops_trailing_tokens(self):
        pipeline = parse("sleep 5 & echo ignored | wc")
        self.assertEqual(len(pipeline), 1)
        self.assertEqual(pipeline[0].arguments, ["sleep", "5"])
        self.assertTrue(pipeline.background)

    def test_10_background_pipeline(self):
        pipeline = parse("yes | head -n 1 &")
        self.assertEqual(len(pipeline), 2)
        self.assertFalse(pipeline[0].background)
        self.assertTrue(pipeline[1].background)

    def test_11_quoted_strings(self):
        self.assertEqual(parse('echo "hello world"')[0].arguments, ["echo", "hello world"])

    def test_12_quoted_operators_are_words(self):
        pipeline = parse("echo '|' \">\" '&'")
        self.assertEqual(len(pipeline), 1)
        self.assertEqual(pipeline[0].arguments, ["echo", "|", ">", "&"])
        self.assertFalse(pipeline.background)

    def test_13_empty_line(self):
        for line in ("", "   ", "\t"):
            pipeline = parse(line)
            self.assertEqual(len(pipeline), 0)
            self.assertFalse(pipeline.background)

    def test_14_comment(self):
        self.assertEqual(len(parse("# This is a comment")), 0)
        self.assertEqual(len(parse("   # indented | comment > x")), 0)

    def test_15_complex_pipeline(self):
        pipeline = parse("cat < in.txt | grep test > out.txt")
        self.assertEqual(len(pipeline), 2)
        first, second = pipeline
        self.assertEqual(first, Command(["cat"], input_redirect="in.txt"))
        self.assertEqual(
            second,
            Command(["grep", "test"], output_redirect=OutputRedirect("out.txt", OutputMode.TRUNCATE)),
        )

    def test_16_redirect_before_arguments(self):
        cmd = parse("< in.txt sort -r")[0]
        self.assertEqual(cmd.arguments, ["sort", "-r"])
        self.assertEqual(cmd.input_redirect, "in.txt")

    def test_17_last_redirect_wins(self):
        cmd = parse("echo x > a.txt >> b.txt")[0]
        self.assertEqual(cmd.output_redirect, OutputRedirect("b.txt", OutputMode.APPEND))

    def test_18_redirect_target_taken_verbatim(self):
        pipeline = parse("ls > | wc")
        self.assertEqual(len(pipeline), 1)
        self.assertEqual(pipeline[0].output_redirect.path, "|")
        self.assertEqual(pipeline[0].arguments, ["ls", "wc"])

    def test_19_missing_redirect_target(self):
        for line in ("cat <", "ls >", "ls >>", "ls | wc >"):
            with self.assertRaises(MissingRedirectTargetError, msg=line) as ctx:
                parse(line)
            self.assertIs(ctx.exception.kind, ParseErrorKind.MISSING_REDIRECT_TARGET)

    def test_20_missing_command(self):
        for line in ("| ls", "ls |", "ls | | wc", "> out.txt", "&", "ls | &"):
            with self.assertRaises(MissingCommandError, msg=line) as ctx:
                parse(line)
            self.assertIs(ctx.exception.kind, ParseErrorKind.MISSING_COMMAND)

    def test_21_too_many_pipes(self):
        self.assertEqual(len(parse(" | ".join(["cat"] * 64))), 64)
        with self.assertRaises(TooManyPipesError) as ctx:
            parse(" | ".join(["cat"] * 65))
        self.assertIs(ctx.exception.kind, ParseErrorKind.TOO_MANY_PIPES)

    def test_22_too_many_tokens(self):
        with self.assertRaises(TooManyTokensError):
            parse("echo " + " ".join(["x"] * 300))

    def test_23_parse_errors_are_syntax_errors(self):
        with self.assertRaises(SyntaxError):
            parse("ls |")
        with self.assertRaises(ParseError):
            parse("cat <")

    def test_24_parse_is_deterministic(self):
        line = "cat < a | sort -u >> b &"
        self.assertEqual(parse(line).commands, parse(line).commands)

    def test_25_str_round_trip(self):
        line = 'grep "a b" < in.txt | sort >> out.txt'
        self.assertEqual(str(parse(line)), line)


class TestPipelineRelease(unittest.TestCase):
    def test_01_release_clears_commands(self):
        pipeline = parse("ls -la | grep test > output.txt")
        pipeline.release()
        self.assertEqual(len(pipeline), 0)
        self.assertEqual(pipeline.commands, [])

    def test_02_release_is_idempotent(self):
        pipeline = parse("cmd1 | cmd2 | cmd3 | cmd4")
        self.assertEqual(len(pipeline), 4)
        pipeline.release()
        pipeline.release()
        self.assertEqual(len(pipeline), 0)

    def test_03_release_empty_pipeline(self):
        Pipeline().release()
        parse("").release()

    def test_04_context_manager_releases(self):
        with parse("cat < in.txt | grep test > out.txt") as pipeline:
            self.assertEqual(len(pipeline), 2)
        self.assertEqual(len(pipeline), 0)

    def test_05_context_manager_releases_on_error(self):
        pipeline = parse("echo hi")
        with self.assertRaises(RuntimeError):
            with pipeline:
                raise RuntimeError("boom")
        self.assertEqual(len(pipeline), 0)


if __name__ == "__main__":
    unittest.main()
