"""SQL front end: turns PostgreSQL DDL text into statement values.

Statements are split and walked with the sqlglot tokenizer; the expressions
embedded in them (CHECK, index items, policy predicates, trigger WHEN) are
parsed with sqlglot's expression parser. Statements that are recognised only
by their leading keywords come back as ``OtherStatement`` and it is up to the
processor to ignore or reject them.
"""

from __future__ import annotations

import logging

from sqlglot.tokens import Token

from ddlcat.core.adapters.tokens import (
    TokenCursor,
    is_name,
    is_string,
    is_word,
    split_commas,
    split_statements,
    tokenize,
)
from ddlcat.core.datatypes import is_multiword_type
from ddlcat.core.expressions import ParsedExpression, parse_expression
from ddlcat.core.statements import (
    AlterSchema,
    AlterTable,
    CheckDefinition,
    ColumnDefinition,
    CommentOn,
    ConstraintDefinition,
    CreateFunction,
    CreateIndex,
    CreatePolicy,
    CreateRole,
    CreateSchema,
    CreateTable,
    CreateTrigger,
    DropFunction,
    DropIndex,
    DropPolicy,
    DropRole,
    DropSchema,
    DropTable,
    DropTrigger,
    ForeignKeyDefinition,
    FunctionArgument,
    FunctionSignature,
    GrantObjectKind,
    GrantObjects,
    GrantPrivileges,
    GrantRole,
    ObjectName,
    OtherStatement,
    PolicyCommand,
    PrimaryKeyDefinition,
    Privilege,
    RevokePrivileges,
    RevokeRole,
    RowSecurityAction,
    SetTimeZone,
    Statement,
    TriggerEvent,
    TriggerOrientation,
    TriggerTiming,
    UniqueDefinition,
)

logger = logging.getLogger(__name__)

_DDL_VERBS = frozenset({"CREATE", "ALTER", "DROP"})
_KIND_MODIFIERS = frozenset(
    {"OR", "REPLACE", "TEMP", "TEMPORARY", "UNLOGGED", "GLOBAL", "LOCAL", "UNIQUE",
     "TRUSTED", "PROCEDURAL", "RECURSIVE", "CONSTRAINT"}
)
_KIND_CONTINUATIONS = frozenset(
    {"VIEW", "TABLE", "TRIGGER", "SEARCH", "CONFIGURATION", "DICTIONARY", "PARSER",
     "TEMPLATE", "DATA", "WRAPPER", "METHOD", "CLASS", "FAMILY", "MAPPING",
     "PRIVILEGES", "BY", "OBJECT", "SYSTEM"}
)

_TABLE_CONSTRAINT_WORDS = frozenset(
    {"CONSTRAINT", "PRIMARY", "UNIQUE", "FOREIGN", "CHECK", "EXCLUDE", "LIKE"}
)
_COLUMN_OPTION_WORDS = (
    "CONSTRAINT", "NOT", "NULL", "DEFAULT", "PRIMARY", "UNIQUE", "CHECK",
    "REFERENCES", "GENERATED", "COLLATE", "DEFERRABLE", "INITIALLY",
    "COMPRESSION", "STORAGE",
)
_FUNCTION_OPTION_WORDS = (
    "LANGUAGE", "AS", "IMMUTABLE", "STABLE", "VOLATILE", "NOT", "LEAKPROOF",
    "CALLED", "RETURNS", "STRICT", "SECURITY", "EXTERNAL", "PARALLEL", "COST",
    "ROWS", "SUPPORT", "SET", "WINDOW", "RETURN", "BEGIN", "TRANSFORM",
)
_ARGUMENT_MODES = frozenset({"IN", "OUT", "INOUT", "VARIADIC"})
_ROLE_FLAGS = {
    "SUPERUSER": ("superuser", True),
    "NOSUPERUSER": ("superuser", False),
    "CREATEDB": ("create_db", True),
    "NOCREATEDB": ("create_db", False),
    "CREATEROLE": ("create_role", True),
    "NOCREATEROLE": ("create_role", False),
    "INHERIT": ("inherit", True),
    "NOINHERIT": ("inherit", False),
    "LOGIN": ("login", True),
    "NOLOGIN": ("login", False),
    "REPLICATION": ("replication", True),
    "NOREPLICATION": ("replication", False),
    "BYPASSRLS": ("bypass_rls", True),
    "NOBYPASSRLS": ("bypass_rls", False),
}


def parse_sql(sql: str, dialect: str = "postgres") -> list[Statement]:
    """Parse SQL text into statement values, in document order.

    Raises:
        SqlParseError: if the text cannot be tokenized or a recognised
            statement is malformed.
    """
    tokens = tokenize(sql, dialect)
    reader = StatementReader(sql, dialect)
    statements = [reader.read(stmt_tokens) for _, stmt_tokens in split_statements(sql, tokens)]
    logger.debug("Parsed %d statement(s)", len(statements))
    return statements


def statement_kind(tokens: list[Token]) -> str:
    """Describe a statement by its leading keywords (``CREATE VIEW``, ``SELECT``)."""
    words: list[str] = []
    for token in tokens:
        if not is_word(token):
            break
        word = token.text.upper()
        if not words:
            words.append(word)
            if word not in _DDL_VERBS:
                break
            continue
        if len(words) == 1 and word in _KIND_MODIFIERS:
            continue
        if len(words) == 1 or word in _KIND_CONTINUATIONS:
            words.append(word)
            continue
        break
    if words:
        return " ".join(words)
    return tokens[0].text if tokens else ""


class StatementReader:
    """Reads one statement at a time from its token run."""

    def __init__(self, sql: str, dialect: str = "postgres"):
        self.sql = sql
        self.dialect = dialect

    def read(self, tokens: list[Token]) -> Statement:
        c = self._cursor(tokens)
        if c.accept("CREATE"):
            return self._create(c)
        if c.accept("DROP"):
            return self._drop(c)
        if c.accept("ALTER"):
            return self._alter(c)
        if c.accept("GRANT"):
            return self._grant(c)
        if c.accept("REVOKE"):
            return self._revoke(c)
        if c.at("SET"):
            return self._set(c)
        if c.accept("COMMENT", "ON"):
            return self._comment(c)
        return self._other(c)

    # helpers

    def _cursor(self, tokens: list[Token]) -> TokenCursor:
        return TokenCursor(self.sql, tokens)

    def _other(self, c: TokenCursor, kind: str | None = None) -> OtherStatement:
        return OtherStatement(kind=kind or statement_kind(c.tokens), sql=c.statement_text())

    def _expression(self, c: TokenCursor, tokens: list[Token]) -> ParsedExpression:
        if not tokens:
            raise c.error("expected an expression")
        return parse_expression(c.text(tokens), self.dialect)

    def _object_name(self, c: TokenCursor) -> ObjectName:
        parts = c.qualified_name()
        if len(parts) == 1:
            return ObjectName(parts[0])
        return ObjectName(parts[-1], parts[-2])

    def _object_names(self, c: TokenCursor) -> tuple[ObjectName, ...]:
        names = [self._object_name(c)]
        while c.accept_symbol(","):
            names.append(self._object_name(c))
        return tuple(names)

    def _names(self, c: TokenCursor) -> tuple[str, ...]:
        names = [self._role_name(c)]
        while c.accept_symbol(","):
            names.append(self._role_name(c))
        return tuple(names)

    def _role_name(self, c: TokenCursor) -> str:
        c.accept("GROUP")
        return c.identifier()

    def _column_list(self, c: TokenCursor) -> tuple[str, ...]:
        inner = c.parenthesized()
        return tuple(self._cursor(part).identifier() for part in split_commas(inner))

    def _type_text(self, c: TokenCursor, tokens: list[Token]) -> str:
        return " ".join(c.text(tokens).split())

    # CREATE

    def _create(self, c: TokenCursor) -> Statement:
        or_replace = c.accept("OR", "REPLACE")
        if c.at("USER", "MAPPING"):
            return self._other(c)
        while c.word() in ("TEMP", "TEMPORARY", "UNLOGGED", "GLOBAL", "LOCAL", "CONSTRAINT"):
            c.advance()
        if c.accept("TABLE"):
            return self._create_table(c)
        unique = c.accept("UNIQUE")
        if c.accept("INDEX"):
            return self._create_index(c, unique)
        if unique:
            raise c.error("expected INDEX after UNIQUE")
        if c.accept("FUNCTION"):
            return self._create_function(c, or_replace)
        if c.accept("TRIGGER"):
            return self._create_trigger(c, or_replace)
        if c.accept("POLICY"):
            return self._create_policy(c)
        if c.accept("ROLE") or c.accept("GROUP"):
            return self._create_role(c, login=False)
        if c.accept("USER"):
            return self._create_role(c, login=True)
        if c.accept("SCHEMA"):
            return self._create_schema(c)
        return self._other(c)

    def _create_table(self, c: TokenCursor) -> Statement:
        if_not_exists = c.accept("IF", "NOT", "EXISTS")
        name = self._object_name(c)
        if c.at("AS"):
            return self._other(c, "CREATE TABLE AS")
        if c.at("PARTITION", "OF"):
            return self._other(c, "CREATE TABLE PARTITION OF")
        if c.at("OF"):
            return self._other(c, "CREATE TABLE OF")
        columns: list[ColumnDefinition] = []
        constraints: list[ConstraintDefinition] = []
        for element in split_commas(c.parenthesized()):
            ec = self._cursor(element)
            if ec.word() in _TABLE_CONSTRAINT_WORDS:
                constraint = self._table_constraint(ec)
                if constraint is not None:
                    constraints.append(constraint)
            else:
                columns.append(self._column(ec))
        # INHERITS, PARTITION BY, WITH (...), TABLESPACE: not modelled.
        return CreateTable(
            name=name,
            columns=tuple(columns),
            constraints=tuple(constraints),
            if_not_exists=if_not_exists,
        )

    def _table_constraint(self, c: TokenCursor) -> ConstraintDefinition | None:
        name = c.identifier() if c.accept("CONSTRAINT") else None
        if c.accept("PRIMARY", "KEY"):
            return PrimaryKeyDefinition(columns=self._column_list(c), name=name)
        if c.accept("UNIQUE"):
            nulls_distinct = self._nulls_distinct(c)
            return UniqueDefinition(
                columns=self._column_list(c), name=name, nulls_distinct=nulls_distinct
            )
        if c.accept("FOREIGN", "KEY"):
            columns = self._column_list(c)
            c.expect("REFERENCES")
            return self._references(c, columns, name)
        if c.accept("CHECK"):
            expression = self._expression(c, c.parenthesized())
            return CheckDefinition(expression=expression, name=name)
        if c.accept("EXCLUDE") or c.accept("LIKE"):
            return None
        raise c.error("unexpected table constraint")

    def _nulls_distinct(self, c: TokenCursor) -> bool:
        if c.accept("NULLS", "NOT", "DISTINCT"):
            return False
        c.accept("NULLS", "DISTINCT")
        return True

    def _references(
        self, c: TokenCursor, columns: tuple[str, ...], name: str | None
    ) -> ForeignKeyDefinition:
        table = self._object_name(c)
        referenced = self._column_list(c) if c.at_symbol("(") else ()
        on_delete = on_update = None
        while True:
            if c.accept("MATCH"):
                c.advance()
            elif c.accept("ON", "DELETE"):
                on_delete = self._referential_action(c)
            elif c.accept("ON", "UPDATE"):
                on_update = self._referential_action(c)
            else:
                break
        return ForeignKeyDefinition(
            columns=columns,
            referenced_table=table,
            referenced_columns=referenced,
            name=name,
            on_delete=on_delete,
            on_update=on_update,
        )

    def _referential_action(self, c: TokenCursor) -> str:
        for words in (("NO", "ACTION"), ("SET", "NULL"), ("SET", "DEFAULT"), ("CASCADE",), ("RESTRICT",)):
            if c.accept(*words):
                if words[0] == "SET" and c.at_symbol("("):
                    c.parenthesized()
                return " ".join(words)
        raise c.error("expected a referential action")

    def _column(self, c: TokenCursor) -> ColumnDefinition:
        name = c.identifier()
        type_tokens = c.until(*_COLUMN_OPTION_WORDS)
        if not type_tokens:
            raise c.error(f"expected a data type for column `{name}`")
        data_type = self._type_text(c, type_tokens)
        not_null = generated = identity = False
        default: str | None = None
        constraints: list[ConstraintDefinition] = []
        while not c.at_end():
            constraint_name = c.identifier() if c.accept("CONSTRAINT") else None
            if c.accept("NOT", "NULL"):
                not_null = True
            elif c.accept("NULL"):
                pass
            elif c.accept("DEFAULT"):
                tokens = c.until(*_COLUMN_OPTION_WORDS)
                if not tokens and c.at("NULL"):
                    tokens = [c.advance()]
                if not tokens:
                    raise c.error(f"expected a default value for column `{name}`")
                default = c.text(tokens)
            elif c.accept("PRIMARY", "KEY"):
                constraints.append(PrimaryKeyDefinition(columns=(name,), name=constraint_name))
            elif c.accept("UNIQUE"):
                nulls_distinct = self._nulls_distinct(c)
                constraints.append(
                    UniqueDefinition(columns=(name,), name=constraint_name, nulls_distinct=nulls_distinct)
                )
            elif c.accept("CHECK"):
                expression = self._expression(c, c.parenthesized())
                c.accept("NO", "INHERIT")
                constraints.append(CheckDefinition(expression=expression, name=constraint_name))
            elif c.accept("REFERENCES"):
                constraints.append(self._references(c, (name,), constraint_name))
            elif c.accept("GENERATED"):
                generated = True
                if not c.accept("ALWAYS"):
                    c.expect("BY", "DEFAULT")
                c.expect("AS")
                if c.accept("IDENTITY"):
                    identity = True
                    if c.at_symbol("("):
                        c.parenthesized()
                else:
                    c.parenthesized()
                    if not c.accept("STORED"):
                        c.accept("VIRTUAL")
            elif c.accept("COLLATE"):
                c.qualified_name()
            elif c.accept("COMPRESSION") or c.accept("STORAGE"):
                c.advance()
            elif c.accept("NOT", "DEFERRABLE") or c.accept("DEFERRABLE"):
                pass
            elif c.accept("INITIALLY"):
                c.advance()
            else:
                raise c.error(f"unexpected option for column `{name}`")
        return ColumnDefinition(
            name=name,
            data_type=data_type,
            not_null=not_null,
            default=default,
            generated=generated,
            identity=identity,
            constraints=tuple(constraints),
        )

    def _create_index(self, c: TokenCursor, unique: bool) -> CreateIndex:
        c.accept("CONCURRENTLY")
        if_not_exists = c.accept("IF", "NOT", "EXISTS")
        name = None
        if not c.at("ON"):
            name = c.qualified_name()[-1]
        c.expect("ON")
        c.accept("ONLY")
        table = self._object_name(c)
        if c.accept("USING"):
            c.advance()
        items = tuple(
            self._index_item(c, part) for part in split_commas(c.parenthesized())
        )
        # INCLUDE, NULLS [NOT] DISTINCT, WITH, TABLESPACE, WHERE: not modelled.
        return CreateIndex(
            table=table, items=items, name=name, unique=unique, if_not_exists=if_not_exists
        )

    def _index_item(self, c: TokenCursor, part: list[Token]) -> ParsedExpression:
        """Keep the expression of an index item, dropping collation, opclass
        and ordering."""
        ic = self._cursor(part)
        start = ic.pos
        if ic.at_symbol("("):
            ic.parenthesized()
        else:
            ic.qualified_name()
            if ic.at_symbol("("):
                ic.parenthesized()
        return self._expression(c, part[start : ic.pos])

    def _create_function(self, c: TokenCursor, or_replace: bool) -> CreateFunction:
        name = self._object_name(c)
        arguments = tuple(
            self._function_argument(c, part) for part in split_commas(c.parenthesized())
        )
        return_type = None
        if c.accept("RETURNS"):
            if c.accept("TABLE"):
                return_type = "TABLE (" + c.text(c.parenthesized()) + ")"
            else:
                return_type = self._type_text(c, c.until(*_FUNCTION_OPTION_WORDS))
        body = language = None
        while not c.at_end():
            if c.accept("LANGUAGE"):
                token = c.advance()
                language = token.text.lower()
            elif c.accept("AS"):
                body = c.string()
                if c.accept_symbol(","):
                    c.string()
            elif c.accept("RETURN"):
                body = "RETURN " + c.text(c.rest())
            elif c.accept("BEGIN"):
                body = "BEGIN " + c.text(c.rest())
            elif c.accept("SET"):
                c.until(*[w for w in _FUNCTION_OPTION_WORDS if w != "SET"])
            elif c.accept("SUPPORT"):
                c.qualified_name()
            else:
                c.advance()
        return CreateFunction(
            name=name,
            arguments=arguments,
            return_type=return_type,
            body=body,
            language=language,
            or_replace=or_replace,
        )

    def _function_argument(self, c: TokenCursor, part: list[Token]) -> FunctionArgument:
        ac = self._cursor(part)
        mode = None
        if ac.word() in _ARGUMENT_MODES:
            mode = ac.advance().text.upper()
        tokens = ac.until("DEFAULT", stop_symbols=("=",))
        default = None
        if ac.accept("DEFAULT") or ac.accept_symbol("="):
            default = ac.text(ac.rest())
        if not tokens:
            raise c.error("expected an argument type")
        arg_name = None
        text = self._type_text(c, tokens)
        if len(tokens) > 1 and is_name(tokens[1]) and not is_multiword_type(text):
            arg_name = tokens[0].text
            text = self._type_text(c, tokens[1:])
        return FunctionArgument(data_type=text, name=arg_name, mode=mode, default=default)

    def _create_trigger(self, c: TokenCursor, or_replace: bool) -> CreateTrigger:
        name = c.identifier()
        if c.accept("BEFORE"):
            timing = TriggerTiming.BEFORE
        elif c.accept("AFTER"):
            timing = TriggerTiming.AFTER
        else:
            c.expect("INSTEAD", "OF")
            timing = TriggerTiming.INSTEAD_OF
        events: list[TriggerEvent] = []
        update_columns: list[str] = []
        while True:
            word = c.word()
            if word not in TriggerEvent.__members__:
                raise c.error("expected a trigger event")
            c.advance()
            events.append(TriggerEvent(word))
            if word == "UPDATE" and c.accept("OF"):
                update_columns.append(c.identifier())
                while c.accept_symbol(","):
                    update_columns.append(c.identifier())
            if not c.accept("OR"):
                break
        c.expect("ON")
        table = self._object_name(c)
        orientation = TriggerOrientation.STATEMENT
        when = None
        function = None
        while not c.at_end():
            if c.accept("FROM"):
                self._object_name(c)
            elif c.accept("NOT", "DEFERRABLE") or c.accept("DEFERRABLE"):
                pass
            elif c.accept("INITIALLY"):
                c.advance()
            elif c.accept("REFERENCING"):
                while c.word() in ("OLD", "NEW"):
                    c.advance()
                    c.expect("TABLE")
                    c.accept("AS")
                    c.identifier()
            elif c.accept("FOR"):
                c.accept("EACH")
                word = c.word()
                if word not in TriggerOrientation.__members__:
                    raise c.error("expected ROW or STATEMENT")
                c.advance()
                orientation = TriggerOrientation(word)
            elif c.accept("WHEN"):
                when = self._expression(c, c.parenthesized())
            elif c.accept("EXECUTE"):
                if not c.accept("FUNCTION"):
                    c.expect("PROCEDURE")
                function = self._object_name(c)
                c.parenthesized()
            else:
                raise c.error("unexpected trigger clause")
        if function is None:
            raise c.error("expected EXECUTE FUNCTION")
        return CreateTrigger(
            name=name,
            table=table,
            events=tuple(events),
            timing=timing,
            orientation=orientation,
            function=function,
            update_columns=tuple(update_columns),
            when=when,
            or_replace=or_replace,
        )

    def _create_policy(self, c: TokenCursor) -> CreatePolicy:
        name = c.identifier()
        c.expect("ON")
        table = self._object_name(c)
        permissive = True
        command = PolicyCommand.ALL
        roles: tuple[str, ...] = ()
        using = with_check = None
        while not c.at_end():
            if c.accept("AS"):
                permissive = c.advance().text.upper() != "RESTRICTIVE"
            elif c.accept("FOR"):
                word = c.word()
                if word not in PolicyCommand.__members__:
                    raise c.error("expected a policy command")
                c.advance()
                command = PolicyCommand(word)
            elif c.accept("TO"):
                roles = self._names(c)
            elif c.accept("USING"):
                using = self._expression(c, c.parenthesized())
            elif c.accept("WITH", "CHECK"):
                with_check = self._expression(c, c.parenthesized())
            else:
                raise c.error("unexpected policy clause")
        return CreatePolicy(
            name=name,
            table=table,
            command=command,
            permissive=permissive,
            roles=roles,
            using=using,
            with_check=with_check,
        )

    def _create_role(self, c: TokenCursor, login: bool) -> CreateRole:
        name = c.identifier()
        c.accept("WITH")
        options: dict[str, object] = {"login": login}
        member_of: list[str] = []
        while not c.at_end():
            word = c.word()
            if word in _ROLE_FLAGS:
                c.advance()
                attribute, value = _ROLE_FLAGS[word]
                options[attribute] = value
            elif c.accept("CONNECTION", "LIMIT"):
                sign = -1 if c.accept_symbol("-") else 1
                options["connection_limit"] = sign * c.integer()
            elif c.accept("ENCRYPTED") or c.accept("UNENCRYPTED") or c.accept("PASSWORD"):
                c.accept("PASSWORD")
                c.advance()
            elif c.accept("VALID", "UNTIL"):
                c.string()
            elif c.accept("IN", "ROLE") or c.accept("IN", "GROUP"):
                member_of.extend(self._names(c))
            elif c.accept("ROLE") or c.accept("ADMIN") or c.accept("USER"):
                self._names(c)
            elif c.accept("SYSID"):
                c.integer()
            else:
                raise c.error("unexpected role option")
        return CreateRole(name=name, member_of=tuple(member_of), **options)

    def _create_schema(self, c: TokenCursor) -> CreateSchema:
        if_not_exists = c.accept("IF", "NOT", "EXISTS")
        if c.accept("AUTHORIZATION"):
            owner = c.identifier()
            return CreateSchema(name=owner, authorization=owner, if_not_exists=if_not_exists)
        name = c.identifier()
        authorization = c.identifier() if c.accept("AUTHORIZATION") else None
        # Embedded schema elements are not modelled.
        return CreateSchema(name=name, authorization=authorization, if_not_exists=if_not_exists)

    # DROP

    def _drop(self, c: TokenCursor) -> Statement:
        if c.accept("TABLE"):
            if_exists = c.accept("IF", "EXISTS")
            names = self._object_names(c)
            return DropTable(names=names, if_exists=if_exists, cascade=self._cascade(c))
        if c.accept("INDEX"):
            c.accept("CONCURRENTLY")
            if_exists = c.accept("IF", "EXISTS")
            names = self._object_names(c)
            self._cascade(c)
            return DropIndex(names=names, if_exists=if_exists)
        if c.accept("FUNCTION"):
            return self._drop_function(c)
        if c.accept("TRIGGER"):
            if_exists = c.accept("IF", "EXISTS")
            name = c.identifier()
            table = self._object_name(c) if c.accept("ON") else None
            self._cascade(c)
            return DropTrigger(name=name, table=table, if_exists=if_exists)
        if c.accept("POLICY"):
            if_exists = c.accept("IF", "EXISTS")
            name = c.identifier()
            c.expect("ON")
            table = self._object_name(c)
            self._cascade(c)
            return DropPolicy(name=name, table=table, if_exists=if_exists)
        if c.at("USER", "MAPPING"):
            return self._other(c)
        if c.accept("ROLE") or c.accept("USER") or c.accept("GROUP"):
            if_exists = c.accept("IF", "EXISTS")
            return DropRole(names=self._names(c), if_exists=if_exists)
        if c.accept("SCHEMA"):
            if_exists = c.accept("IF", "EXISTS")
            names = [c.identifier()]
            while c.accept_symbol(","):
                names.append(c.identifier())
            return DropSchema(names=tuple(names), if_exists=if_exists, cascade=self._cascade(c))
        return self._other(c)

    def _cascade(self, c: TokenCursor) -> bool:
        cascade = c.accept("CASCADE")
        if not cascade:
            c.accept("RESTRICT")
        if not c.at_end():
            raise c.error("unexpected trailing tokens")
        return cascade

    def _drop_function(self, c: TokenCursor) -> DropFunction:
        if_exists = c.accept("IF", "EXISTS")
        targets = [self._function_signature(c)]
        while c.accept_symbol(","):
            targets.append(self._function_signature(c))
        return DropFunction(targets=tuple(targets), if_exists=if_exists, cascade=self._cascade(c))

    def _function_signature(self, c: TokenCursor) -> FunctionSignature:
        name = self._object_name(c)
        if not c.at_symbol("("):
            return FunctionSignature(name=name)
        arguments = [self._function_argument(c, part) for part in split_commas(c.parenthesized())]
        types = tuple(a.data_type for a in arguments if a.mode not in ("OUT",))
        return FunctionSignature(name=name, argument_types=types)

    # ALTER

    def _alter(self, c: TokenCursor) -> Statement:
        if c.accept("TABLE"):
            if_exists = c.accept("IF", "EXISTS")
            c.accept("ONLY")
            name = self._object_name(c)
            c.accept_symbol("*")
            actions: list[RowSecurityAction] = []
            for part in split_commas(c.rest()):
                action = self._row_security_action(self._cursor(part))
                if action is not None:
                    actions.append(action)
            return AlterTable(name=name, actions=tuple(actions), if_exists=if_exists)
        if c.accept("SCHEMA"):
            if_exists = c.accept("IF", "EXISTS")
            name = c.identifier()
            if c.accept("RENAME", "TO"):
                return AlterSchema(name=name, new_name=c.identifier(), if_exists=if_exists)
            c.expect("OWNER", "TO")
            return AlterSchema(name=name, new_owner=c.identifier(), if_exists=if_exists)
        return self._other(c)

    def _row_security_action(self, c: TokenCursor) -> RowSecurityAction | None:
        for words, action in (
            (("ENABLE",), RowSecurityAction.ENABLE),
            (("DISABLE",), RowSecurityAction.DISABLE),
            (("FORCE",), RowSecurityAction.FORCE),
            (("NO", "FORCE"), RowSecurityAction.NO_FORCE),
        ):
            if c.at(*words, "ROW", "LEVEL", "SECURITY"):
                return action
        return None

    # GRANT / REVOKE

    def _grant(self, c: TokenCursor) -> Statement:
        head = c.until("ON", "TO")
        if c.accept("ON"):
            all_privileges, privileges = self._privileges(c, head)
            objects = self._grant_objects(c, c.until("TO"))
            c.expect("TO")
            grantees = self._names(c)
            with_grant_option = c.accept("WITH", "GRANT", "OPTION")
            granted_by = self._role_name(c) if c.accept("GRANTED", "BY") else None
            return GrantPrivileges(
                privileges=privileges,
                objects=objects,
                grantees=grantees,
                all_privileges=all_privileges,
                with_grant_option=with_grant_option,
                granted_by=granted_by,
            )
        c.expect("TO")
        roles = self._names(self._cursor(head))
        grantees = self._names(c)
        with_admin_option = False
        if c.accept("WITH"):
            if c.accept("ADMIN"):
                with_admin_option = not c.accept("FALSE")
            c.rest()
        return GrantRole(roles=roles, grantees=grantees, with_admin_option=with_admin_option)

    def _revoke(self, c: TokenCursor) -> Statement:
        grant_option_for = c.accept("GRANT", "OPTION", "FOR")
        admin_option_for = c.accept("ADMIN", "OPTION", "FOR")
        head = c.until("ON", "FROM")
        if c.accept("ON"):
            all_privileges, privileges = self._privileges(c, head)
            objects = self._grant_objects(c, c.until("FROM"))
            c.expect("FROM")
            grantees = self._names(c)
            if c.accept("GRANTED", "BY"):
                self._role_name(c)
            return RevokePrivileges(
                privileges=privileges,
                objects=objects,
                grantees=grantees,
                all_privileges=all_privileges,
                grant_option_for=grant_option_for,
                cascade=self._cascade(c),
            )
        c.expect("FROM")
        roles = self._names(self._cursor(head))
        grantees = self._names(c)
        if admin_option_for:
            logger.debug("REVOKE ADMIN OPTION FOR %s read as a membership revoke", roles)
        return RevokeRole(roles=roles, grantees=grantees)

    def _privileges(
        self, c: TokenCursor, head: list[Token]
    ) -> tuple[bool, tuple[Privilege, ...]]:
        if not head:
            raise c.error("expected privileges")
        privileges: list[Privilege] = []
        all_privileges = False
        for part in split_commas(head):
            pc = self._cursor(part)
            words: list[str] = []
            while pc.word() is not None:
                words.append(pc.advance().text.upper())
            columns = self._column_list(pc) if pc.at_symbol("(") else ()
            if not words:
                raise c.error("expected a privilege")
            if words[0] == "ALL":
                all_privileges = True
                if columns:
                    privileges.append(Privilege(kind="ALL", columns=columns))
                continue
            privileges.append(Privilege(kind=" ".join(words), columns=columns))
        return all_privileges, tuple(privileges)

    def _grant_objects(self, c: TokenCursor, tokens: list[Token]) -> GrantObjects:
        oc = self._cursor(tokens)
        if oc.accept("ALL"):
            word = oc.advance().text.upper()
            oc.expect("IN", "SCHEMA")
            schemas = tuple(ObjectName(n) for n in self._names(oc))
            if word == "TABLES":
                return GrantObjects(GrantObjectKind.ALL_TABLES_IN_SCHEMA, schemas)
            if word in ("FUNCTIONS", "ROUTINES", "PROCEDURES"):
                return GrantObjects(GrantObjectKind.ALL_FUNCTIONS_IN_SCHEMA, schemas)
            if word == "SEQUENCES":
                return GrantObjects(GrantObjectKind.SEQUENCES, schemas)
            return GrantObjects(GrantObjectKind.OTHER, schemas)
        if oc.accept("SCHEMA"):
            return GrantObjects(
                GrantObjectKind.SCHEMAS, tuple(ObjectName(n) for n in self._names(oc))
            )
        if oc.accept("FUNCTION") or oc.accept("ROUTINE") or oc.accept("PROCEDURE"):
            names = [self._function_signature(oc).name]
            while oc.accept_symbol(","):
                names.append(self._function_signature(oc).name)
            return GrantObjects(GrantObjectKind.FUNCTIONS, tuple(names))
        if oc.accept("SEQUENCE"):
            return GrantObjects(GrantObjectKind.SEQUENCES, self._object_names(oc))
        if oc.word() in ("DATABASE", "DOMAIN", "FOREIGN", "LANGUAGE", "LARGE", "TABLESPACE",
                         "TYPE", "PARAMETER"):
            return GrantObjects(GrantObjectKind.OTHER, ())
        oc.accept("TABLE")
        return GrantObjects(GrantObjectKind.TABLES, self._object_names(oc))

    # SET / COMMENT

    def _set(self, c: TokenCursor) -> Statement:
        c.expect("SET")
        if c.word() in ("SESSION", "LOCAL"):
            c.advance()
        if c.accept("TIME", "ZONE"):
            return SetTimeZone(value=self._time_zone_value(c))
        if c.word() == "TIMEZONE":
            c.advance()
            if not c.accept("TO"):
                c.expect_symbol("=")
            return SetTimeZone(value=self._time_zone_value(c))
        return self._other(c, "SET")

    def _time_zone_value(self, c: TokenCursor) -> str:
        token = c.peek()
        if token is not None and is_string(token):
            return c.string()
        if c.word() in ("LOCAL", "DEFAULT"):
            return c.advance().text.upper()
        value = c.text(c.rest())
        if not value:
            raise c.error("expected a time zone")
        return value

    def _comment(self, c: TokenCursor) -> CommentOn:
        if c.accept("TABLE"):
            kind = "TABLE"
            target = self._object_name(c)
            column = None
        elif c.accept("COLUMN"):
            kind = "COLUMN"
            parts = c.qualified_name()
            if len(parts) < 2:
                raise c.error("expected table.column")
            column = parts[-1]
            target = ObjectName(parts[-2], parts[-3] if len(parts) > 2 else None)
        else:
            kind = c.advance().text.upper()
            target = ObjectName(c.text(c.until("IS")))
            column = None
        c.expect("IS")
        text = None if c.accept("NULL") else c.string()
        return CommentOn(object_kind=kind, target=target, column=column, text=text)
