"""Commands exposed by the ``occi`` CLI."""

from __future__ import annotations

from argparse import ArgumentParser, Namespace
from typing import Any, Iterable, TextIO

from occi_core.client import Client
from occi_core.model import Entity, Link, Resource
from occi_core.render.media import parse_value


def parse_assignments(values: Iterable[str] | None) -> dict[str, Any]:
    attributes: dict[str, Any] = {}
    for item in values or ():
        name, sep, raw = item.partition("=")
        if not sep or not name.strip():
            raise ValueError(f"expected NAME=VALUE, got '{item}'")
        attributes[name.strip()] = parse_value(raw)
    return attributes


class OcciCommand:
    """Base class: configure a sub-parser, then run against a client."""

    name = ""

    @classmethod
    def configure(cls, parser: ArgumentParser) -> None:
        return None

    def run(self, client: Client, args: Namespace, out: TextIO) -> int:
        raise NotImplementedError


class ListCommand(OcciCommand):
    """List instance locations, optionally restricted to one kind."""

    name = "list"

    @classmethod
    def configure(cls, parser: ArgumentParser) -> None:
        parser.add_argument("type", nargs="?", help="Kind term or identifier.")

    def run(self, client: Client, args: Namespace, out: TextIO) -> int:
        for location in client.list(args.type):
            print(location, file=out)
        return 0


class DescribeCommand(OcciCommand):
    """Describe every entity, the instances of a kind, or one instance."""

    name = "describe"

    @classmethod
    def configure(cls, parser: ArgumentParser) -> None:
        parser.add_argument("target", nargs="?", help="Kind term, identifier or instance location.")

    def run(self, client: Client, args: Namespace, out: TextIO) -> int:
        for entity in client.describe(args.target):
            _print_entity(entity, out)
        return 0


class CreateCommand(OcciCommand):
    """Create a resource of the given kind and print its location."""

    name = "create"

    @classmethod
    def configure(cls, parser: ArgumentParser) -> None:
        parser.add_argument("kind", help="Kind term or identifier.")
        parser.add_argument("--title")
        parser.add_argument(
            "--mixin",
            action="append",
            default=[],
            help="Mixin term or identifier; may be repeated.",
        )
        parser.add_argument(
            "--attribute",
            action="append",
            default=[],
            help="NAME=VALUE attribute; may be repeated.",
        )

    def run(self, client: Client, args: Namespace, out: TextIO) -> int:
        builder = client.builder()
        resource = builder.build_resource(args.kind)
        resource.title = args.title
        for mixin_name in args.mixin:
            mixin = client.model.find_mixin(mixin_name)
            if mixin is None:
                raise ValueError(f"unknown mixin '{mixin_name}'")
            resource.add_mixin(mixin)
        for name, value in parse_assignments(args.attribute).items():
            resource.set_attribute(name, value)
        print(client.create(resource), file=out)
        return 0


class DeleteCommand(OcciCommand):
    """Delete one instance, or every instance of a kind."""

    name = "delete"

    @classmethod
    def configure(cls, parser: ArgumentParser) -> None:
        parser.add_argument("target", help="Kind term, identifier or instance location.")

    def run(self, client: Client, args: Namespace, out: TextIO) -> int:
        deleted = client.delete(args.target)
        print("deleted" if deleted else "not deleted", file=out)
        return 0 if deleted else 1


class TriggerCommand(OcciCommand):
    """Trigger an action on one instance, or on every instance of a kind."""

    name = "trigger"

    @classmethod
    def configure(cls, parser: ArgumentParser) -> None:
        parser.add_argument("target", help="Kind term, identifier or instance location.")
        parser.add_argument("action", help="Action term or identifier.")
        parser.add_argument("--attribute", action="append", default=[])

    def run(self, client: Client, args: Namespace, out: TextIO) -> int:
        action = client.builder().build_action_instance(args.action)
        for name, value in parse_assignments(args.attribute).items():
            action.set_attribute(name, value)
        triggered = client.trigger(args.target, action)
        print("triggered" if triggered else "not triggered", file=out)
        return 0 if triggered else 1


class ModelCommand(OcciCommand):
    """Print the kinds, mixins and actions the server advertises."""

    name = "model"

    def run(self, client: Client, args: Namespace, out: TextIO) -> int:
        if not client.connected:
            client.connect()
        model = client.model
        sections = (("Kinds", model.kinds), ("Mixins", model.mixins), ("Actions", model.actions))
        for title, categories in sections:
            print(f"{title}:", file=out)
            for category in sorted(categories, key=lambda item: item.identifier):
                location = getattr(category, "location", None)
                suffix = f"  {location}" if location else ""
                print(f"  {category.identifier}{suffix}", file=out)
        return 0


class MixinsCommand(OcciCommand):
    """List the mixins related to a category, e.g. os_tpl templates."""

    name = "mixins"

    @classmethod
    def configure(cls, parser: ArgumentParser) -> None:
        parser.add_argument("related", help="Category term or identifier.")

    def run(self, client: Client, args: Namespace, out: TextIO) -> int:
        if not client.connected:
            client.connect()
        mixins = client.model.find_related_mixins(args.related)
        for mixin in sorted(mixins, key=lambda item: item.identifier):
            title = f"  {mixin.title}" if mixin.title else ""
            print(f"{mixin.identifier}{title}", file=out)
        return 0


COMMANDS: dict[str, type[OcciCommand]] = {
    command.name: command
    for command in (
        ListCommand,
        DescribeCommand,
        CreateCommand,
        DeleteCommand,
        TriggerCommand,
        ModelCommand,
        MixinsCommand,
    )
}


def _print_entity(entity: Entity, out: TextIO) -> None:
    print(f"{entity.identifier} {entity.location or entity.id}", file=out)
    if entity.title:
        print(f"  title = {entity.title}", file=out)
    if entity.mixins:
        print(f"  mixins = {' '.join(entity.mixins)}", file=out)
    if isinstance(entity, Resource):
        if entity.summary:
            print(f"  summary = {entity.summary}", file=out)
        for link in entity.links:
            print(f"  link -> {link.target}", file=out)
    if isinstance(entity, Link):
        print(f"  source = {entity.source}", file=out)
        print(f"  target = {entity.target}", file=out)
    for name, value in sorted(entity.attributes.items()):
        print(f"  {name} = {value}", file=out)
