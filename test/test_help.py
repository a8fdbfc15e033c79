"""
Help rendering tests (render_help, HelpCommand, fault rendering).

Conventions
- Test method names follow CamelCase per project convention.
- Output is captured by redirecting stdout/stderr into a StringIO.
"""

from __future__ import annotations

import contextlib
import io
import os
import unittest
from unittest import TestCase, mock

from rich.console import Console

from arbor import (
    Command,
    FaultCode,
    HelpCommand,
    MissingArgumentError,
    UnknownCommandError,
    render_help,
)


def capture(callable, *args, **kwargs):
    stream = io.StringIO()
    with contextlib.redirect_stdout(stream), mock.patch.dict(os.environ, {"COLUMNS": "120"}):
        callable(*args, **kwargs)
    return stream.getvalue()


def sample():
    app = Command("app", "demo application", version="1.0.0", throw_errors=True)
    app.option("-v, --verbose", "chatty output", global_=True)
    app.option("--token <token:string>", "api token", required=True)
    app.env("APP_TOKEN <token:string>", "token fallback")
    app.example("deploy", "app deploy web --port 80")
    deploy = app.command("deploy d <service:string>", "deploy a service")
    deploy.option("-p, --port <port:integer>", "listen port", default=8080)
    app.command("secret", hidden=True)
    return app, deploy


class TestRenderHelp(TestCase):
    """Plain rendering of every help section."""

    def testRootSections(self):
        app, _ = sample()
        output = capture(render_help, app)
        self.assertIn("usage: app [options] [command]", output)
        self.assertIn("demo application", output)
        self.assertIn("version: 1.0.0", output)
        self.assertIn("--verbose", output)
        self.assertIn("(global)", output)
        self.assertIn("required", output)
        self.assertIn("deploy, d", output)
        self.assertIn("APP_TOKEN", output)
        self.assertIn("app deploy web --port 80", output)
        self.assertNotIn("secret", output)

    def testChildShowsRouteAndInheritedOptions(self):
        _, deploy = sample()
        output = capture(render_help, deploy)
        self.assertIn("usage: app deploy [options] <service:string>", output)
        self.assertIn("--port", output)
        self.assertIn("default: 8080", output)
        self.assertIn("--verbose", output)
        self.assertIn("version: 1.0.0", output)

    def testFancyPanel(self):
        app = Command("app", fancy=True)
        self.assertIn("APP HELP", capture(render_help, app))

    def testStderrTarget(self):
        app = Command("app")
        stream = io.StringIO()
        with contextlib.redirect_stderr(stream):
            render_help(app, stderr=True)
        self.assertIn("usage: app", stream.getvalue())


class TestHelpCommand(TestCase):
    """The ready-made help sub-command."""

    def setUp(self):
        self.app, self.deploy = sample()
        self.helper = self.app.command("help", HelpCommand(global_=True))

    def testShowsParentHelp(self):
        output = capture(self.app.parse, ["help"])
        self.assertIn("usage: app", output)
        self.assertIn("deploy, d", output)

    def testShowsNamedSubCommand(self):
        output = capture(self.app.parse, ["help", "deploy"])
        self.assertIn("usage: app deploy", output)

    def testReachableFromDescendants(self):
        result = self.app.parse(["deploy", "help"], dry=True)
        self.assertIs(result.command, self.helper)

    def testUnknownNameRaises(self):
        with self.assertRaises(UnknownCommandError):
            self.app.parse(["help", "nope"])

    def testCommandHelpDelegatesToShow(self):
        with mock.patch.object(HelpCommand, "show") as show:
            self.deploy.help()
        show.assert_called_once_with(self.deploy, stderr=False)

    def testCommandTypeCompletesSiblings(self):
        settings = self.helper.get_completion("command")
        self.assertEqual(set(settings.complete()), {"deploy", "help"})

    def testShowRejectsOtherObjects(self):
        with self.assertRaises(TypeError):
            self.helper.show(42)


class TestFaultRendering(TestCase):
    """Faults render themselves through rich."""

    def render(self, fault):
        console = Console(file=io.StringIO(), width=100)
        console.print(fault)
        return console.file.getvalue()

    def testCompactForm(self):
        output = self.render(MissingArgumentError("missing argument: name", hint="pass a name"))
        self.assertIn("error: missing argument: name", output)
        self.assertIn("→ pass a name", output)

    def testDebugHeader(self):
        app = Command("app", throw_errors=True)
        fault = app.error(MissingArgumentError(
            "missing argument: name",
            title="missing argument",
            code=FaultCode.MISSING_ARGUMENT,
        ))
        output = self.render(MissingArgumentError(fault.message, **{**fault.options, "debug": True}))
        self.assertIn("[ app | 11301 | Missing Argument ]", output)

    def testDebugExitShowsCode(self):
        app = Command("app")
        app.arguments("<name:string>")
        stream = io.StringIO()
        with contextlib.redirect_stderr(stream), mock.patch.dict(os.environ, {"ARBOR_DEBUG": "1"}):
            with self.assertRaises(SystemExit):
                app.parse([])
        self.assertIn("11301", stream.getvalue())


if __name__ == "__main__":
    unittest.main()
