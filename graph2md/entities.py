"""Per-label entity variants.

Each renderable primary label (File, Function, Class, Type, Domain,
Subdomain, Directory) has one :class:`Entity` subclass that knows its own
front-matter fields, body sections and FAQ candidates. All of them read
the shared, already-complete :class:`~graph2md.context.RenderContext`.
"""

from __future__ import annotations

import posixpath
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple, Type

from .context import RenderContext
from .models import (
    CLASS,
    DIRECTORY,
    DOMAIN,
    FILE,
    FUNCTION,
    SUBDOMAIN,
    TYPE,
    Node,
    get_int,
    get_str,
)

MetadataItem = Tuple[str, Any]

# Listing answers are cut off after this many names.
FAQ_FUNCTION_LIMIT = 10
FAQ_LIST_LIMIT = 8

HIGH_DEPENDENCY_THRESHOLD = 5
MANY_IMPORTS_THRESHOLD = 5
COMPLEX_FUNCTION_THRESHOLD = 10
COMPLEX_CLASS_THRESHOLD = 5


@dataclass
class Section:
    title: str
    items: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class FAQ:
    question: str
    answer: str


def listing(names: Sequence[str], limit: int) -> str:
    """Sorted, comma-joined names with an ``and N more`` tail past *limit*."""
    ordered = sorted(names)
    text = ", ".join(ordered[:limit])
    if len(ordered) > limit:
        text += f", and {len(ordered) - limit} more"
    return text


def _directory_of(path: str) -> str:
    directory = posixpath.dirname(path)
    return "" if directory in ("", ".") else directory


class Entity(ABC):
    """One renderable node and the views derived from it."""

    label: str = ""

    def __init__(self, node: Node, slug: str, ctx: RenderContext) -> None:
        self.node = node
        self.slug = slug
        self.ctx = ctx
        self.props = node.properties

    # -- shared accessors ------------------------------------------------

    @property
    def name(self) -> str:
        return get_str(self.props, "name") or self.node.id

    @property
    def domain(self) -> str:
        return self.ctx.ownership.domain(self.node.id)

    @property
    def subdomain(self) -> str:
        return self.ctx.ownership.subdomain(self.node.id)

    def _related(self, adjacency) -> Tuple[str, ...]:
        return adjacency.get(self.node.id, ())

    @property
    def imports(self) -> Tuple[str, ...]:
        return self._related(self.ctx.index.imports)

    @property
    def imported_by(self) -> Tuple[str, ...]:
        return self._related(self.ctx.index.imported_by)

    @property
    def calls(self) -> Tuple[str, ...]:
        return self._related(self.ctx.index.calls)

    @property
    def called_by(self) -> Tuple[str, ...]:
        return self._related(self.ctx.index.called_by)

    @property
    def functions(self) -> Tuple[str, ...]:
        return self._related(self.ctx.index.defines_function)

    @property
    def classes(self) -> Tuple[str, ...]:
        return self._related(self.ctx.index.declares_class)

    @property
    def types(self) -> Tuple[str, ...]:
        return self._related(self.ctx.index.defines_type)

    def defining_file(self) -> Optional[str]:
        """Id of the node that defines this entity, if any."""
        return None

    # -- capability interface ----------------------------------------

    @abstractmethod
    def metadata(self) -> List[MetadataItem]:
        """Ordered front-matter pairs, tags included."""

    @abstractmethod
    def body_sections(self) -> List[Section]:
        """Non-empty body sections in their fixed order."""

    @abstractmethod
    def faq_candidates(self) -> List[FAQ]:
        """Every FAQ whose backing data is present."""

    # -- shared pieces ---------------------------------------------------

    def tags(self) -> List[str]:
        tags = list(self.node.labels)
        language = get_str(self.props, "language")
        if language:
            tags.append(language)

        imported_by = len(self.imported_by)
        imports = len(self.imports)
        called_by = len(self.called_by)

        if imported_by >= HIGH_DEPENDENCY_THRESHOLD or called_by >= HIGH_DEPENDENCY_THRESHOLD:
            tags.append("High-Dependency")
        if imports >= MANY_IMPORTS_THRESHOLD:
            tags.append("Many-Imports")
        if (
            len(self.functions) >= COMPLEX_FUNCTION_THRESHOLD
            or len(self.classes) >= COMPLEX_CLASS_THRESHOLD
        ):
            tags.append("Complex")
        if imported_by == 0 and imports == 0 and called_by == 0 and self.label == FILE:
            tags.append("Isolated")
        return tags

    def _ownership_items(self) -> List[MetadataItem]:
        items: List[MetadataItem] = []
        if self.domain:
            items.append(("domain", self.domain))
        if self.subdomain:
            items.append(("subdomain", self.subdomain))
        return items

    def _ownership_sections(self) -> List[Section]:
        sections: List[Section] = []
        if self.domain:
            sections.append(Section("Domain", [self.ctx.domain_link(self.domain)]))
        if self.subdomain:
            sections.append(Section("Subdomains", [self.ctx.subdomain_link(self.subdomain)]))
        return sections

    def _list_section(self, title: str, node_ids: Sequence[str], label_fn) -> List[Section]:
        if not node_ids:
            return []
        return [Section(title, self.ctx.linked_list(node_ids, label_fn))]

    def _function_label(self, node_id: str) -> str:
        return self.ctx.resolve_name(node_id) + "()"


class SymbolEntity(Entity):
    """Shared recipe for Function, Class and Type nodes."""

    kind_title = ""
    name_key = ""

    @property
    def file_path(self) -> str:
        return get_str(self.props, "filePath")

    @property
    def start_line(self) -> int:
        return get_int(self.props, "startLine")

    @property
    def end_line(self) -> int:
        return get_int(self.props, "endLine")

    @property
    def display_name(self) -> str:
        return get_str(self.props, "name")

    @abstractmethod
    def title(self) -> str:
        """Page title."""

    @abstractmethod
    def description_subject(self) -> str:
        """Noun phrase naming the symbol, e.g. ``the run() function``."""

    def description(self) -> str:
        desc = f"Architecture documentation for {self.description_subject()}"
        if self.file_path:
            desc += f" in {posixpath.basename(self.file_path)}"
        return desc + f" from the {self.ctx.repo_name} codebase."

    def _location_items(self) -> List[MetadataItem]:
        items: List[MetadataItem] = []
        if self.file_path:
            items.append(("file_path", self.file_path))
            directory = _directory_of(self.file_path)
            if directory:
                items.append(("directory", directory))
        language = get_str(self.props, "language")
        if language:
            items.append(("language", language))
        if self.start_line > 0:
            items.append(("start_line", self.start_line))
        if self.end_line > 0:
            items.append(("end_line", self.end_line))
            items.append(("line_count", self.end_line - self.start_line + 1))
        return items

    def _head_items(self) -> List[MetadataItem]:
        return [
            ("title", self.title()),
            ("description", self.description()),
            ("node_type", self.label),
            (self.name_key, self.display_name),
            *self._location_items(),
            ("repo", self.ctx.repo_name),
        ]

    def _defined_in_section(self) -> List[Section]:
        file_id = self.defining_file()
        if file_id is None:
            return []
        return [Section("Defined In", [self.ctx.link(file_id, self.ctx.resolve_name_with_path(file_id))])]

    def _source_section(self) -> List[Section]:
        url = self.ctx.source_url(self.file_path, self.start_line)
        if not url:
            return []
        return [Section("Source", [f'<a href="{url}">View on GitHub</a>'])]

    def _where_defined_faq(self, subject: str) -> List[FAQ]:
        file_id = self.defining_file()
        if file_id is None:
            return []
        answer = f"{subject} is defined in {self.ctx.resolve_name_with_path(file_id)}"
        if self.start_line > 0:
            answer += f" at line {self.start_line}"
        return [FAQ(f"Where is {subject} defined?", answer + ".")]

    def _what_is_answer(self, subject: str, kind: str) -> str:
        desc = f"{subject} is a {kind} in the {self.ctx.repo_name} codebase"
        file_id = self.defining_file()
        if file_id is not None:
            desc += f", defined in {self.ctx.resolve_name_with_path(file_id)}"
        return desc + "."


class FileEntity(Entity):
    label = FILE

    @property
    def path(self) -> str:
        return get_str(self.props, "path")

    @property
    def file_name(self) -> str:
        return get_str(self.props, "name") or posixpath.basename(self.path)

    def metadata(self) -> List[MetadataItem]:
        repo = self.ctx.repo_name
        name = self.file_name
        language = get_str(self.props, "language")
        imports = len(self.imports)
        imported_by = len(self.imported_by)

        desc = f"Architecture documentation for {name}"
        if language:
            desc += f", a {language} file"
        desc += f" in the {repo} codebase."
        if imports > 0 or imported_by > 0:
            desc += f" {imports} imports, {imported_by} dependents."

        items: List[MetadataItem] = [
            ("title", f"{name} — {repo} Source File"),
            ("description", desc),
            ("node_type", FILE),
            ("file_path", self.path),
            ("file_name", name),
        ]
        if language:
            items.append(("language", language))
        items.append(("repo", repo))
        items.append(("repo_url", self.ctx.repo_url))

        directory = _directory_of(self.path)
        if directory:
            items.append(("directory", directory))
            top = directory.split("/")[0]
            if top:
                items.append(("top_directory", top))
        extension = posixpath.splitext(name)[1]
        if extension:
            items.append(("extension", extension))

        items.extend(self._ownership_items())
        items.extend([
            ("import_count", imports),
            ("imported_by_count", imported_by),
            ("function_count", len(self.functions)),
            ("class_count", len(self.classes)),
            ("type_count", len(self.types)),
            ("tags", self.tags()),
        ])
        return items

    def body_sections(self) -> List[Section]:
        ctx = self.ctx
        sections = self._ownership_sections()
        sections += self._list_section("Functions", self.functions, self._function_label)
        sections += self._list_section("Classes", self.classes, ctx.resolve_name)
        sections += self._list_section("Types", self.types, ctx.resolve_name)
        sections += self._list_section("Dependencies", self.imports, ctx.resolve_name)
        sections += self._list_section("Imported By", self.imported_by, ctx.resolve_name_with_path)
        url = ctx.source_url(self.path)
        if url:
            sections.append(Section("Source", [f'<a href="{url}">View on GitHub</a>']))
        return sections

    def faq_candidates(self) -> List[FAQ]:
        ctx = self.ctx
        name = self.file_name
        language = get_str(self.props, "language")
        faqs: List[FAQ] = []

        desc = f"{name} is a source file in the {ctx.repo_name} codebase"
        if language:
            desc += f", written in {language}"
        desc += "."
        if self.domain:
            desc += f" It belongs to the {self.domain} domain"
            if self.subdomain:
                desc += f", {self.subdomain} subdomain"
            desc += "."
        faqs.append(FAQ(f"What does {name} do?", desc))

        if self.functions:
            faqs.append(FAQ(
                f"What functions are defined in {name}?",
                f"{name} defines {len(self.functions)} function(s): "
                f"{listing(ctx.resolve_names(self.functions), FAQ_FUNCTION_LIMIT)}.",
            ))

        if self.imports:
            faqs.append(FAQ(
                f"What does {name} depend on?",
                f"{name} imports {len(self.imports)} module(s): "
                f"{listing(ctx.resolve_names(self.imports), FAQ_LIST_LIMIT)}.",
            ))

        if self.imported_by:
            faqs.append(FAQ(
                f"What files import {name}?",
                f"{name} is imported by {len(self.imported_by)} file(s): "
                f"{listing(ctx.resolve_names(self.imported_by), FAQ_LIST_LIMIT)}.",
            ))

        position: List[str] = []
        if self.domain:
            position.append(f"domain: {self.domain}")
        if self.subdomain:
            position.append(f"subdomain: {self.subdomain}")
        directory = _directory_of(self.path)
        if directory:
            position.append(f"directory: {directory}")
        if position:
            faqs.append(FAQ(
                f"Where is {name} in the architecture?",
                f"{name} is located at {self.path} ({', '.join(position)}).",
            ))
        return faqs


class FunctionEntity(SymbolEntity):
    label = FUNCTION
    name_key = "function_name"

    def defining_file(self) -> Optional[str]:
        return self.ctx.index.file_of_function.get(self.node.id)

    def title(self) -> str:
        return f"{self.display_name}() — {self.ctx.repo_name} Function Reference"

    def description_subject(self) -> str:
        return f"the {self.display_name}() function"

    def metadata(self) -> List[MetadataItem]:
        return [
            *self._head_items(),
            ("call_count", len(self.calls)),
            ("called_by_count", len(self.called_by)),
            *self._ownership_items(),
            ("tags", self.tags()),
        ]

    def body_sections(self) -> List[Section]:
        sections = self._defined_in_section()
        sections += self._ownership_sections()
        sections += self._list_section("Calls", self.calls, self._function_label)
        sections += self._list_section("Called By", self.called_by, self._function_label)
        sections += self._source_section()
        return sections

    def faq_candidates(self) -> List[FAQ]:
        ctx = self.ctx
        subject = self.name + "()"
        faqs = [FAQ(f"What does {subject} do?", self._what_is_answer(subject, "function"))]
        faqs += self._where_defined_faq(subject)
        if self.calls:
            faqs.append(FAQ(
                f"What does {subject} call?",
                f"{subject} calls {len(self.calls)} function(s): "
                f"{listing(ctx.resolve_names(self.calls), FAQ_LIST_LIMIT)}.",
            ))
        if self.called_by:
            faqs.append(FAQ(
                f"What calls {subject}?",
                f"{subject} is called by {len(self.called_by)} function(s): "
                f"{listing(ctx.resolve_names(self.called_by), FAQ_LIST_LIMIT)}.",
            ))
        return faqs


class ClassEntity(SymbolEntity):
    label = CLASS
    name_key = "class_name"

    @property
    def parents(self) -> Tuple[str, ...]:
        return self._related(self.ctx.index.extends)

    def defining_file(self) -> Optional[str]:
        return self.ctx.index.file_of_class.get(self.node.id)

    def title(self) -> str:
        return f"{self.display_name} Class — {self.ctx.repo_name} Architecture"

    def description_subject(self) -> str:
        return f"the {self.display_name} class"

    def metadata(self) -> List[MetadataItem]:
        items = [*self._head_items(), *self._ownership_items()]
        if self.parents:
            items.append(("extends", ", ".join(self.ctx.resolve_names(self.parents))))
        items.append(("tags", self.tags()))
        return items

    def body_sections(self) -> List[Section]:
        sections = self._defined_in_section()
        sections += self._ownership_sections()
        sections += self._list_section("Extends", self.parents, self.ctx.resolve_name)
        sections += self._source_section()
        return sections

    def faq_candidates(self) -> List[FAQ]:
        subject = self.name
        faqs = [FAQ(f"What is the {subject} class?", self._what_is_answer(subject, "class"))]
        faqs += self._where_defined_faq(subject)
        if self.parents:
            faqs.append(FAQ(
                f"What does {subject} extend?",
                f"{subject} extends {', '.join(self.ctx.resolve_names(self.parents))}.",
            ))
        return faqs


class TypeEntity(SymbolEntity):
    label = TYPE
    name_key = "type_name"

    def defining_file(self) -> Optional[str]:
        return self.ctx.index.file_of_type.get(self.node.id)

    def title(self) -> str:
        return f"{self.display_name} Type — {self.ctx.repo_name} Architecture"

    def description_subject(self) -> str:
        return f"the {self.display_name} type/interface"

    def metadata(self) -> List[MetadataItem]:
        return [*self._head_items(), *self._ownership_items(), ("tags", self.tags())]

    def body_sections(self) -> List[Section]:
        sections = self._defined_in_section()
        sections += self._ownership_sections()
        sections += self._source_section()
        return sections

    def faq_candidates(self) -> List[FAQ]:
        subject = self.name
        faqs = [FAQ(f"What is the {subject} type?", self._what_is_answer(subject, "type/interface"))]
        faqs += self._where_defined_faq(subject)
        return faqs


class DomainEntity(Entity):
    label = DOMAIN

    @property
    def files(self) -> Tuple[str, ...]:
        return self.ctx.ownership.files_in_domain(get_str(self.props, "name"))

    @property
    def subdomains(self) -> Tuple[str, ...]:
        return self.ctx.ownership.domain_subdomains.get(get_str(self.props, "name"), ())

    def metadata(self) -> List[MetadataItem]:
        repo = self.ctx.repo_name
        summary = get_str(self.props, "description")
        file_count = len(self.files)
        desc = f"{summary} " if summary else ""
        desc += (
            f"Architectural overview of the {self.name} domain in the {repo} codebase. "
            f"Contains {file_count} source files."
        )
        items: List[MetadataItem] = [
            ("title", f"{self.name} Domain — {repo} Architecture"),
            ("description", desc),
            ("node_type", DOMAIN),
            ("domain", self.name),
            ("repo", repo),
            ("file_count", file_count),
        ]
        if summary:
            items.append(("summary", summary))
        items.append(("tags", self.tags()))
        return items

    def body_sections(self) -> List[Section]:
        sections = self._list_section("Subdomains", self.subdomains, self.ctx.resolve_name)
        sections += self._list_section("Source Files", self.files, self.ctx.resolve_name_with_path)
        return sections

    def faq_candidates(self) -> List[FAQ]:
        name = self.name
        file_count = len(self.files)
        summary = get_str(self.props, "description")

        desc = f"The {name} domain is an architectural grouping in the {self.ctx.repo_name} codebase"
        if summary:
            desc += ". " + summary
        desc += f" It contains {file_count} source files."
        faqs = [FAQ(f"What is the {name} domain?", desc)]

        if self.subdomains:
            names = ", ".join(sorted(self.ctx.resolve_names(self.subdomains)))
            faqs.append(FAQ(
                f"What subdomains are in {name}?",
                f"The {name} domain contains {len(self.subdomains)} subdomain(s): {names}.",
            ))

        faqs.append(FAQ(
            f"How many files are in {name}?",
            f"The {name} domain contains {file_count} source files.",
        ))
        return faqs


class SubdomainEntity(Entity):
    label = SUBDOMAIN

    @property
    def parent_domain(self) -> str:
        return self.ctx.ownership.part_of_domain.get(self.node.id, "")

    @property
    def files(self) -> Tuple[str, ...]:
        return self.ctx.ownership.files_in_subdomain(get_str(self.props, "name"))

    @property
    def members(self) -> Tuple[Tuple[str, ...], Tuple[str, ...]]:
        name = get_str(self.props, "name")
        ownership = self.ctx.ownership
        return (
            ownership.subdomain_functions.get(name, ()),
            ownership.subdomain_classes.get(name, ()),
        )

    def metadata(self) -> List[MetadataItem]:
        repo = self.ctx.repo_name
        summary = get_str(self.props, "description")
        parent = self.parent_domain
        file_count = len(self.files)

        desc = f"{summary} " if summary else ""
        desc += f"Architecture documentation for the {self.name} subdomain"
        if parent:
            desc += f" (part of {parent} domain)"
        desc += f" in the {repo} codebase. Contains {file_count} source files."

        items: List[MetadataItem] = [
            ("title", f"{self.name} — {repo} Architecture"),
            ("description", desc),
            ("node_type", SUBDOMAIN),
            ("subdomain", self.name),
        ]
        if parent:
            items.append(("domain", parent))
        items.append(("repo", repo))
        items.append(("file_count", file_count))
        if summary:
            items.append(("summary", summary))
        items.append(("tags", self.tags()))
        return items

    def body_sections(self) -> List[Section]:
        functions, classes = self.members
        sections: List[Section] = []
        if self.parent_domain:
            sections.append(Section("Domain", [self.ctx.domain_link(self.parent_domain)]))
        sections += self._list_section("Functions", functions, self._function_label)
        sections += self._list_section("Classes", classes, self.ctx.resolve_name)
        sections += self._list_section("Source Files", self.files, self.ctx.resolve_name_with_path)
        return sections

    def faq_candidates(self) -> List[FAQ]:
        name = self.name
        parent = self.parent_domain
        functions, _ = self.members
        summary = get_str(self.props, "description")

        desc = f"{name} is a subdomain in the {self.ctx.repo_name} codebase"
        if parent:
            desc += f", part of the {parent} domain"
        if summary:
            desc += ". " + summary
        desc += f" It contains {len(self.files)} source files."
        faqs = [FAQ(f"What is the {name} subdomain?", desc)]

        if parent:
            faqs.append(FAQ(
                f"Which domain does {name} belong to?",
                f"{name} belongs to the {parent} domain.",
            ))
        if functions:
            faqs.append(FAQ(
                f"What functions are in {name}?",
                f"The {name} subdomain contains {len(functions)} function(s): "
                f"{listing(self.ctx.resolve_names(functions), FAQ_LIST_LIMIT)}.",
            ))
        return faqs


class DirectoryEntity(Entity):
    label = DIRECTORY

    @property
    def path(self) -> str:
        return get_str(self.props, "path") or self.dir_name

    @property
    def dir_name(self) -> str:
        return get_str(self.props, "name") or posixpath.basename(get_str(self.props, "path"))

    @property
    def files(self) -> Tuple[str, ...]:
        return self._related(self.ctx.index.contains_file)

    @property
    def subdirectories(self) -> Tuple[str, ...]:
        return self._related(self.ctx.index.child_directory)

    def metadata(self) -> List[MetadataItem]:
        repo = self.ctx.repo_name
        path = self.path
        file_count = len(self.files)
        subdir_count = len(self.subdirectories)
        items: List[MetadataItem] = [
            ("title", f"{path}/ — {repo} Directory Structure"),
            (
                "description",
                f"Directory listing for {path}/ in the {repo} codebase. "
                f"Contains {file_count} files and {subdir_count} subdirectories.",
            ),
            ("node_type", DIRECTORY),
            ("dir_name", self.dir_name),
            ("dir_path", path),
            ("repo", repo),
            ("file_count", file_count),
            ("subdir_count", subdir_count),
        ]
        top = path.split("/")[0]
        if top:
            items.append(("top_directory", top))
        items.append(("tags", self.tags()))
        return items

    def body_sections(self) -> List[Section]:
        ctx = self.ctx
        sections = self._list_section(
            "Subdirectories", self.subdirectories,
            lambda node_id: ctx.resolve_name_with_path(node_id) + "/",
        )
        sections += self._list_section("Files", self.files, ctx.resolve_name)
        return sections

    def faq_candidates(self) -> List[FAQ]:
        name = self.dir_name
        files = self.files
        subdirs = self.subdirectories
        faqs = [FAQ(
            f"What's in the {name}/ directory?",
            f"The {name}/ directory contains {len(files)} files and {len(subdirs)} "
            f"subdirectories in the {self.ctx.repo_name} codebase.",
        )]
        if subdirs:
            names = ", ".join(sorted(self.ctx.resolve_names(subdirs)))
            faqs.append(FAQ(
                f"What subdirectories does {name}/ contain?",
                f"{name}/ contains {len(subdirs)} subdirectory(ies): {names}.",
            ))
        return faqs


ENTITY_TYPES: Dict[str, Type[Entity]] = {
    cls.label: cls
    for cls in (
        FileEntity, FunctionEntity, ClassEntity, TypeEntity,
        DomainEntity, SubdomainEntity, DirectoryEntity,
    )
}


def entity_for(node: Node, label: str, slug: str, ctx: RenderContext) -> Entity:
    """Build the variant for *label*; raises ``KeyError`` for unknown labels."""
    return ENTITY_TYPES[label](node, slug, ctx)
