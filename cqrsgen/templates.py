# File: cqrsgen/templates.py
"""
CQRSGen - C# Code Template Engine
===================================
Turns a table's column and primary-key metadata into six C# source files
following the Repository + CQRS (MediatR) pattern:

    1. Entity class                       (``<Ns>.Entities``)
    2. Repository interface               (``<Ns>.Repositories``)
    3. Dapper repository implementation   (``<Ns>.Repositories``)
    4. Create / Update / Delete commands  (``<Ns>.CQRS.Commands``)
    5. GetAll / GetById queries           (``<Ns>.CQRS.Queries``)
    6. Command and query handlers         (``<Ns>.CQRS.Handlers``)

Every generator is a pure function of
``(class_name, columns, primary_keys, namespace)``; the repository
implementation also needs the SQL table name.  Column order is preserved
everywhere so properties, factory parameters and SQL column lists line up.

**Assembly contract:**
    - All text is built as ``List[str]`` and joined once with ``"\\n"``.
    - No shared mutable state: the six generators are independent.
    - Input is never validated; odd input yields odd (but total) output.

Only the first primary-key column (in column order) is used.  Composite
keys are not represented in the generated signatures.
"""

from __future__ import annotations

import logging
from typing import Collection, Dict, FrozenSet, List, NamedTuple, Optional, Sequence, Tuple

from cqrsgen.models import ColumnDescriptor, GeneratedCode, TableDescriptor
from cqrsgen.typemap import map_type
from cqrsgen.utils import Timer, derive_class_base_name, to_camel_case, to_pascal_case

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("cqrsgen.templates")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_INDENT: str = "    "
_I2: str = _INDENT * 2
_I3: str = _INDENT * 3
_I4: str = _INDENT * 4

DEFAULT_PK_TYPE: str = "int"
DEFAULT_PK_NAME: str = "id"

# Substring of a column default that marks a sequence-backed key
AUTO_INCREMENT_MARKER: str = "nextval"

# C# namespaces required by non-System target types
_TYPE_USINGS: Dict[str, str] = {
    "BitArray": "System.Collections",
    "IPAddress": "System.Net",
    "IPNetwork": "System.Net",
    "PhysicalAddress": "System.Net.NetworkInformation",
    "XmlDocument": "System.Xml",
    "NpgsqlPoint": "NpgsqlTypes",
    "NpgsqlLine": "NpgsqlTypes",
    "NpgsqlLSeg": "NpgsqlTypes",
    "NpgsqlBox": "NpgsqlTypes",
    "NpgsqlPath": "NpgsqlTypes",
    "NpgsqlPolygon": "NpgsqlTypes",
    "NpgsqlCircle": "NpgsqlTypes",
    "NpgsqlTsQuery": "NpgsqlTypes",
    "NpgsqlTsVector": "NpgsqlTypes",
}

_CSHARP_KEYWORDS: FrozenSet[str] = frozenset({
    "abstract", "as", "base", "bool", "break", "byte", "case", "catch",
    "char", "checked", "class", "const", "continue", "decimal", "default",
    "delegate", "do", "double", "else", "enum", "event", "explicit",
    "extern", "false", "finally", "fixed", "float", "for", "foreach",
    "goto", "if", "implicit", "in", "int", "interface", "internal", "is",
    "lock", "long", "namespace", "new", "null", "object", "operator",
    "out", "override", "params", "private", "protected", "public",
    "readonly", "ref", "return", "sbyte", "sealed", "short", "sizeof",
    "stackalloc", "static", "string", "struct", "switch", "this", "throw",
    "true", "try", "typeof", "uint", "ulong", "unchecked", "unsafe",
    "ushort", "using", "virtual", "void", "volatile", "while",
})


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class PrimaryKeyInfo(NamedTuple):
    """Resolved primary key: SQL column name, C# property name and type."""

    column_name: str
    property_name: str
    csharp_type: str
    column: Optional[ColumnDescriptor]

    @property
    def is_auto_increment(self) -> bool:
        if self.column is None or not self.column.default_expression:
            return False
        return AUTO_INCREMENT_MARKER in self.column.default_expression


def resolve_primary_key(
    columns: Sequence[ColumnDescriptor],
    primary_keys: Collection[str],
) -> PrimaryKeyInfo:
    """
    Pick the first column (in column order) named in *primary_keys*.

    Falls back to an ``int id`` key when no column matches.
    """
    for col in columns:
        if col.name in primary_keys:
            return PrimaryKeyInfo(
                column_name=col.name,
                property_name=to_pascal_case(col.name),
                csharp_type=map_type(col.source_type, col.is_nullable),
                column=col,
            )
    return PrimaryKeyInfo(
        column_name=DEFAULT_PK_NAME,
        property_name=to_pascal_case(DEFAULT_PK_NAME),
        csharp_type=DEFAULT_PK_TYPE,
        column=None,
    )


def _property(col: ColumnDescriptor) -> Tuple[str, str]:
    """Return ``(csharp_type, property_name)`` for a column."""
    return map_type(col.source_type, col.is_nullable), to_pascal_case(col.name)


def _parameter_name(column_name: str) -> str:
    """camelCase parameter name, ``@``-escaped when it is a C# keyword."""
    name: str = to_camel_case(column_name)
    return f"@{name}" if name in _CSHARP_KEYWORDS else name


def _usings(
    system: Sequence[str],
    columns: Sequence[ColumnDescriptor],
    others: Sequence[str],
) -> List[str]:
    """
    Build the ``using`` block: fixed System namespaces, then namespaces
    required by the column types (sorted), then the remaining namespaces.
    """
    extra: set = set()
    for col in columns:
        csharp_type: str = map_type(col.source_type, col.is_nullable)
        bare: str = csharp_type.rstrip("?").replace("[]", "")
        if bare in _TYPE_USINGS:
            extra.add(_TYPE_USINGS[bare])

    ordered: List[str] = list(system)
    ordered.extend(ns for ns in sorted(extra) if ns not in ordered)
    ordered.extend(ns for ns in others if ns not in ordered)
    lines: List[str] = [f"using {ns};" for ns in ordered]
    lines.append("")
    return lines


def _handler_class(
    handler_name: str,
    request_type: str,
    response_type: str,
    repository_type: str,
    body: Sequence[str],
) -> List[str]:
    """Render one MediatR handler with a constructor-injected repository."""
    lines: List[str] = [
        f"{_INDENT}public class {handler_name} : IRequestHandler<{request_type}, {response_type}>",
        f"{_INDENT}{{",
        f"{_I2}private readonly {repository_type} _repository;",
        "",
        f"{_I2}public {handler_name}({repository_type} repository)",
        f"{_I2}{{",
        f"{_I3}_repository = repository;",
        f"{_I2}}}",
        "",
        f"{_I2}public async Task<{response_type}> Handle({request_type} request, "
        f"CancellationToken cancellationToken)",
        f"{_I2}{{",
    ]
    lines.extend(body)
    lines.append(f"{_I2}}}")
    lines.append(f"{_INDENT}}}")
    return lines


def _factory_call(class_name: str, columns: Sequence[ColumnDescriptor]) -> List[str]:
    """``var entity = X.Create(request.A, ...);`` with one argument per line."""
    if not columns:
        return [f"{_I3}var entity = {class_name}.Create();"]
    lines: List[str] = [f"{_I3}var entity = {class_name}.Create("]
    args: List[str] = [f"{_I4}request.{to_pascal_case(col.name)}" for col in columns]
    lines.append(",\n".join(args) + ");")
    return lines


# ===========================================================================
# 1. Entity
# ===========================================================================


def generate_entity(
    class_name: str,
    columns: Sequence[ColumnDescriptor],
    primary_keys: Collection[str],
    namespace: str,
) -> str:
    """
    Entity with construction-only properties, a private parameterless
    constructor and a static ``Create`` factory taking every column in
    order.
    """
    lines: List[str] = _usings(["System"], columns, [])
    lines.append(f"namespace {namespace}.Entities")
    lines.append("{")
    lines.append(f"{_INDENT}public class {class_name}")
    lines.append(f"{_INDENT}{{")

    for col in columns:
        csharp_type, prop = _property(col)
        pk_note: str = " (Primary Key)" if col.name in primary_keys else ""
        lines.append(f"{_I2}/// <summary>")
        lines.append(f"{_I2}/// {prop} property{pk_note}")
        lines.append(f"{_I2}/// </summary>")
        lines.append(f"{_I2}public {csharp_type} {prop} {{ get; private set; }}")
        lines.append("")

    lines.append(f"{_I2}private {class_name}() {{ }}")
    lines.append("")

    params: str = ", ".join(
        f"{_property(col)[0]} {_parameter_name(col.name)}" for col in columns
    )
    lines.append(f"{_I2}public static {class_name} Create({params})")
    lines.append(f"{_I2}{{")
    lines.append(f"{_I3}return new {class_name}")
    lines.append(f"{_I3}{{")
    for col in columns:
        lines.append(f"{_I4}{to_pascal_case(col.name)} = {_parameter_name(col.name)},")
    lines.append(f"{_I3}}};")
    lines.append(f"{_I2}}}")
    lines.append(f"{_INDENT}}}")
    lines.append("}")
    lines.append("")
    return "\n".join(lines)


# ===========================================================================
# 2. Repository interface
# ===========================================================================


def generate_repository_interface(
    class_name: str,
    columns: Sequence[ColumnDescriptor],
    primary_keys: Collection[str],
    namespace: str,
) -> str:
    """``I<Class>Repository`` with the five async CRUD operations."""
    pk: PrimaryKeyInfo = resolve_primary_key(columns, primary_keys)

    lines: List[str] = _usings(
        ["System", "System.Collections.Generic", "System.Threading.Tasks"],
        [],
        [f"{namespace}.Entities"],
    )
    lines.extend([
        f"namespace {namespace}.Repositories",
        "{",
        f"{_INDENT}public interface I{class_name}Repository",
        f"{_INDENT}{{",
        f"{_I2}Task<IEnumerable<{class_name}>> GetAllAsync();",
        "",
        f"{_I2}Task<{class_name}> GetByIdAsync({pk.csharp_type} id);",
        "",
        f"{_I2}Task<int> AddAsync({class_name} entity);",
        "",
        f"{_I2}Task<bool> UpdateAsync({class_name} entity);",
        "",
        f"{_I2}Task<bool> DeleteAsync({pk.csharp_type} id);",
        f"{_INDENT}}}",
        "}",
        "",
    ])
    return "\n".join(lines)


# ===========================================================================
# 3. Repository implementation (Dapper)
# ===========================================================================


def generate_repository_implementation(
    class_name: str,
    columns: Sequence[ColumnDescriptor],
    primary_keys: Collection[str],
    namespace: str,
    table_name: Optional[str] = None,
) -> str:
    """
    Dapper repository over an injected ``IUnitOfWork``.

    *table_name* is used verbatim in the SQL (schema qualifier included);
    it defaults to *class_name*.

    ``AddAsync`` appends ``RETURNING <pk>`` and returns the scalar when the
    key column's default draws from a sequence; otherwise it executes the
    insert and returns ``1``.
    """
    sql_table: str = table_name or class_name
    pk: PrimaryKeyInfo = resolve_primary_key(columns, primary_keys)
    repository_name: str = f"{class_name}Repository"
    connection: str = "_unitOfWork.Connection"

    lines: List[str] = _usings(
        [
            "System",
            "System.Collections.Generic",
            "System.Data",
            "System.Linq",
            "System.Threading.Tasks",
        ],
        [],
        [
            "Dapper",
            "Microsoft.Extensions.Configuration",
            "Npgsql",
            f"{namespace}.Entities",
        ],
    )
    lines.extend([
        f"namespace {namespace}.Repositories",
        "{",
        f"{_INDENT}public class {repository_name} : I{class_name}Repository",
        f"{_INDENT}{{",
        f"{_I2}private readonly IUnitOfWork _unitOfWork;",
        "",
        f"{_I2}public {repository_name}(IUnitOfWork unitOfWork) => _unitOfWork = unitOfWork;",
        "",
    ])

    # GetAllAsync
    lines.extend([
        f"{_I2}public async Task<IEnumerable<{class_name}>> GetAllAsync()",
        f"{_I2}{{",
        f'{_I3}var query = "SELECT * FROM {sql_table}";',
        f"{_I3}return await {connection}.QueryAsync<{class_name}>(query);",
        f"{_I2}}}",
        "",
    ])

    # GetByIdAsync
    lines.extend([
        f"{_I2}public async Task<{class_name}> GetByIdAsync({pk.csharp_type} id)",
        f"{_I2}{{",
        f'{_I3}var query = "SELECT * FROM {sql_table} WHERE {pk.column_name} = @Id";',
        f"{_I3}return await {connection}.QueryFirstOrDefaultAsync<{class_name}>"
        f"(query, new {{ Id = id }});",
        f"{_I2}}}",
        "",
    ])

    # AddAsync
    column_list: str = ", ".join(col.name for col in columns)
    param_list: str = ", ".join(f"@{to_pascal_case(col.name)}" for col in columns)
    lines.extend([
        f"{_I2}public async Task<int> AddAsync({class_name} entity)",
        f"{_I2}{{",
        f'{_I3}var query = @"INSERT INTO {sql_table} ({column_list})',
    ])
    if pk.is_auto_increment:
        lines.append(f'{_I4}VALUES ({param_list}) RETURNING {pk.column_name}";')
        lines.append(f"{_I3}return await {connection}.ExecuteScalarAsync<int>(query, entity);")
    else:
        lines.append(f'{_I4}VALUES ({param_list})";')
        lines.append(f"{_I3}await {connection}.ExecuteAsync(query, entity);")
        lines.append(f"{_I3}return 1;")
    lines.append(f"{_I2}}}")
    lines.append("")

    # UpdateAsync
    assignments: str = ", ".join(
        f"{col.name} = @{to_pascal_case(col.name)}"
        for col in columns
        if col.name not in primary_keys
    )
    lines.extend([
        f"{_I2}public async Task<bool> UpdateAsync({class_name} entity)",
        f"{_I2}{{",
        f'{_I3}var query = @"UPDATE {sql_table}',
        f"{_I4}SET {assignments}",
        f'{_I4}WHERE {pk.column_name} = @{pk.property_name}";',
        f"{_I3}var result = await {connection}.ExecuteAsync(query, entity);",
        f"{_I3}return result > 0;",
        f"{_I2}}}",
        "",
    ])

    # DeleteAsync
    lines.extend([
        f"{_I2}public async Task<bool> DeleteAsync({pk.csharp_type} id)",
        f"{_I2}{{",
        f'{_I3}var query = "DELETE FROM {sql_table} WHERE {pk.column_name} = @Id";',
        f"{_I3}var result = await {connection}.ExecuteAsync(query, new {{ Id = id }});",
        f"{_I3}return result > 0;",
        f"{_I2}}}",
        f"{_INDENT}}}",
        "}",
        "",
    ])
    return "\n".join(lines)


# ===========================================================================
# 4. Commands
# ===========================================================================


def generate_commands(
    class_name: str,
    columns: Sequence[ColumnDescriptor],
    primary_keys: Collection[str],
    namespace: str,
) -> str:
    """Create / Update commands carrying every column, Delete carrying the key."""
    pk: PrimaryKeyInfo = resolve_primary_key(columns, primary_keys)

    lines: List[str] = _usings(
        ["System"], columns, ["MediatR", f"{namespace}.Entities"]
    )
    lines.append(f"namespace {namespace}.CQRS.Commands")
    lines.append("{")

    for verb, response_type in (("Create", "int"), ("Update", "bool")):
        lines.append(f"{_INDENT}public class {verb}{class_name}Command : IRequest<{response_type}>")
        lines.append(f"{_INDENT}{{")
        for col in columns:
            csharp_type, prop = _property(col)
            lines.append(f"{_I2}public {csharp_type} {prop} {{ get; set; }}")
        lines.append(f"{_INDENT}}}")
        lines.append("")

    lines.extend([
        f"{_INDENT}public class Delete{class_name}Command : IRequest<bool>",
        f"{_INDENT}{{",
        f"{_I2}public {pk.csharp_type} Id {{ get; set; }}",
        f"{_INDENT}}}",
        "}",
        "",
    ])
    return "\n".join(lines)


# ===========================================================================
# 5. Queries
# ===========================================================================


def generate_queries(
    class_name: str,
    columns: Sequence[ColumnDescriptor],
    primary_keys: Collection[str],
    namespace: str,
) -> str:
    """GetAll (no fields) and GetById (key-typed ``Id``) queries."""
    pk: PrimaryKeyInfo = resolve_primary_key(columns, primary_keys)

    lines: List[str] = _usings(
        ["System", "System.Collections.Generic"],
        [],
        ["MediatR", f"{namespace}.Entities"],
    )
    lines.extend([
        f"namespace {namespace}.CQRS.Queries",
        "{",
        f"{_INDENT}public class GetAll{class_name}Query : IRequest<IEnumerable<{class_name}>>",
        f"{_INDENT}{{",
        f"{_I2}// No parameters needed for GetAll",
        f"{_INDENT}}}",
        "",
        f"{_INDENT}public class Get{class_name}ByIdQuery : IRequest<{class_name}>",
        f"{_INDENT}{{",
        f"{_I2}public {pk.csharp_type} Id {{ get; set; }}",
        f"{_INDENT}}}",
        "}",
        "",
    ])
    return "\n".join(lines)


# ===========================================================================
# 6. Handlers
# ===========================================================================


def generate_handlers(
    class_name: str,
    columns: Sequence[ColumnDescriptor],
    primary_keys: Collection[str],
    namespace: str,
) -> str:
    """
    One handler per command/query.  Create/Update rebuild the entity
    through its ``Create`` factory, field by field, in column order.
    """
    repository_type: str = f"I{class_name}Repository"

    lines: List[str] = _usings(
        [
            "System",
            "System.Collections.Generic",
            "System.Threading",
            "System.Threading.Tasks",
        ],
        [],
        [
            "MediatR",
            f"{namespace}.CQRS.Commands",
            f"{namespace}.CQRS.Queries",
            f"{namespace}.Entities",
            f"{namespace}.Repositories",
        ],
    )
    lines.append(f"namespace {namespace}.CQRS.Handlers")
    lines.append("{")

    factory: List[str] = _factory_call(class_name, columns)
    handlers: List[List[str]] = [
        _handler_class(
            f"Create{class_name}CommandHandler",
            f"Create{class_name}Command",
            "int",
            repository_type,
            factory + ["", f"{_I3}return await _repository.AddAsync(entity);"],
        ),
        _handler_class(
            f"Update{class_name}CommandHandler",
            f"Update{class_name}Command",
            "bool",
            repository_type,
            factory + ["", f"{_I3}return await _repository.UpdateAsync(entity);"],
        ),
        _handler_class(
            f"Delete{class_name}CommandHandler",
            f"Delete{class_name}Command",
            "bool",
            repository_type,
            [f"{_I3}return await _repository.DeleteAsync(request.Id);"],
        ),
        _handler_class(
            f"GetAll{class_name}QueryHandler",
            f"GetAll{class_name}Query",
            f"IEnumerable<{class_name}>",
            repository_type,
            [f"{_I3}return await _repository.GetAllAsync();"],
        ),
        _handler_class(
            f"Get{class_name}ByIdQueryHandler",
            f"Get{class_name}ByIdQuery",
            class_name,
            repository_type,
            [f"{_I3}return await _repository.GetByIdAsync(request.Id);"],
        ),
    ]

    for index, handler in enumerate(handlers):
        if index:
            lines.append("")
        lines.extend(handler)

    lines.append("}")
    lines.append("")
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# TemplateGenerator class
# ---------------------------------------------------------------------------


class TemplateGenerator:
    """
    Stateless facade over the six generators for one target namespace.

    ``generate_all`` derives the class base name once and reuses it for
    every artifact so the six outputs reference each other consistently.

    Thread-safe: no mutable instance state.
    """

    def __init__(self, namespace: str) -> None:
        self._namespace: str = namespace
        logger.debug("TemplateGenerator initialised (namespace=%s).", namespace)

    @property
    def namespace(self) -> str:
        return self._namespace

    def generate_entity(self, class_name: str, table: TableDescriptor) -> str:
        return generate_entity(class_name, table.columns, table.primary_keys, self._namespace)

    def generate_repository_interface(self, class_name: str, table: TableDescriptor) -> str:
        return generate_repository_interface(
            class_name, table.columns, table.primary_keys, self._namespace
        )

    def generate_repository_implementation(self, class_name: str, table: TableDescriptor) -> str:
        return generate_repository_implementation(
            class_name,
            table.columns,
            table.primary_keys,
            self._namespace,
            table_name=table.logical_name,
        )

    def generate_commands(self, class_name: str, table: TableDescriptor) -> str:
        return generate_commands(class_name, table.columns, table.primary_keys, self._namespace)

    def generate_queries(self, class_name: str, table: TableDescriptor) -> str:
        return generate_queries(class_name, table.columns, table.primary_keys, self._namespace)

    def generate_handlers(self, class_name: str, table: TableDescriptor) -> str:
        return generate_handlers(class_name, table.columns, table.primary_keys, self._namespace)

    def generate_all(
        self,
        table: TableDescriptor,
        trim_trailing_plural: bool = False,
    ) -> Tuple[str, GeneratedCode]:
        """
        Render all six artifacts for *table*.

        Returns:
            Tuple of (class base name, GeneratedCode bundle).
        """
        class_name: str = derive_class_base_name(table.logical_name, trim_trailing_plural)

        with Timer("template_generation") as t:
            code: GeneratedCode = GeneratedCode(
                entity=self.generate_entity(class_name, table),
                interface=self.generate_repository_interface(class_name, table),
                repository=self.generate_repository_implementation(class_name, table),
                commands=self.generate_commands(class_name, table),
                queries=self.generate_queries(class_name, table),
                handlers=self.generate_handlers(class_name, table),
            )

        logger.info(
            "Generated 6 artifacts for %s as '%s' (%d columns) in %.3fs.",
            table.logical_name,
            class_name,
            len(table.columns),
            t.elapsed,
        )
        return class_name, code


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "TemplateGenerator",
    "PrimaryKeyInfo",
    "resolve_primary_key",
    "generate_entity",
    "generate_repository_interface",
    "generate_repository_implementation",
    "generate_commands",
    "generate_queries",
    "generate_handlers",
    "AUTO_INCREMENT_MARKER",
    "DEFAULT_PK_TYPE",
]

logger.debug("cqrsgen.templates loaded.")
