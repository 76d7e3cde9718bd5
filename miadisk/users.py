"""Group and user management over the text of ``users.txt``.

Each line of the file is either a group record ``GID, G, name`` or a user
record ``UID, U, group, user, password``.  A record whose id is ``0`` is
deleted.  The functions here validate a request against the current text
and return either the line to append or the rewritten text.
"""

from __future__ import annotations

from typing import Iterator, List, Tuple


class UsersError(ValueError):
    """Raised when a users.txt operation is invalid or cannot be applied."""


def split_lines(text: str) -> List[str]:
    """Split on any newline convention (``\\r\\n``, ``\\r`` or ``\\n``)."""
    return text.replace("\r\n", "\n").replace("\r", "\n").split("\n")


def split_csv(text: str) -> List[str]:
    """Split a record on commas, trimming each field."""
    return [field.strip() for field in text.split(",")]


def atoi_safe(text: str) -> int:
    """Parse the leading ASCII digits of ``text``; 0 when there are none."""
    value = 0
    for ch in text:
        if not "0" <= ch <= "9":
            break
        value = value * 10 + (ord(ch) - ord("0"))
    return value


def invalid_token(text: str) -> bool:
    """True if ``text`` holds a comma or any whitespace."""
    return "," in text or any(ch.isspace() for ch in text)


def _records(lines: List[str]) -> Iterator[Tuple[int, List[str]]]:
    """Yield ``(line index, fields)`` for every non-blank, non-comment line."""
    for index, raw in enumerate(lines):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        yield index, split_csv(line)


def _join(lines: List[str]) -> str:
    content = "\n".join(lines)
    if not content.endswith("\n"):
        content += "\n"
    return content


def _group_exists(lines: List[str], name: str) -> bool:
    return any(
        len(parts) >= 3
        and parts[1].upper() == "G"
        and atoi_safe(parts[0]) > 0
        and parts[2] == name
        for _, parts in _records(lines)
    )


def add_group(text: str, name: str) -> str:
    """Return the record line that creates group ``name``."""
    name = name.strip()
    if not name or any(ch in name for ch in " \t\r\n,"):
        raise UsersError(
            "mkgrp: nombre inválido (no puede estar vacío ni contener espacios o comas)"
        )

    max_gid = 0
    for _, parts in _records(split_lines(text)):
        if len(parts) < 3 or parts[1].upper() != "G":
            continue
        gid = atoi_safe(parts[0])
        if gid > 0 and parts[2] == name:
            raise UsersError(f'mkgrp: el grupo "{name}" ya existe')
        max_gid = max(max_gid, gid)

    return f"{max_gid + 1}, G, {name}"


def add_user(text: str, user: str, password: str, group: str) -> str:
    """Return the record line that creates ``user`` in ``group``."""
    user, password, group = user.strip(), password.strip(), group.strip()
    if not user or not password or not group:
        raise UsersError("mkusr: faltan -usr, -pass o -grp")
    if invalid_token(user) or invalid_token(password) or invalid_token(group):
        raise UsersError("mkusr: usr/pass/grp no deben contener espacios ni comas")

    group_exists = False
    max_uid = 0
    for _, parts in _records(split_lines(text)):
        if len(parts) < 3:
            continue
        tag = parts[1].upper()
        if tag == "G" and len(parts) == 3:
            if atoi_safe(parts[0]) > 0 and parts[2] == group:
                group_exists = True
        elif tag == "U" and len(parts) == 5:
            uid = atoi_safe(parts[0])
            if uid > 0 and parts[3] == user:
                raise UsersError(f'mkusr: el usuario "{user}" ya existe')
            max_uid = max(max_uid, uid)

    if not group_exists:
        raise UsersError(f'mkusr: el grupo "{group}" no existe o está eliminado')

    return f"{max_uid + 1}, U, {group}, {user}, {password}"


def remove_group(text: str, name: str) -> str:
    """Return ``text`` with group ``name`` marked as deleted."""
    name = name.strip()
    if not name or "," in name:
        raise UsersError("rmgrp: nombre inválido (no vacío ni con comas)")

    lines = split_lines(text)
    for index, parts in _records(lines):
        if len(parts) < 3 or parts[1].upper() != "G" or parts[2] != name:
            continue
        if atoi_safe(parts[0]) == 0:
            raise UsersError(f'rmgrp: el grupo "{name}" ya está eliminado')
        lines[index] = f"0, G, {name}"
        return _join(lines)

    raise UsersError(f'rmgrp: el grupo "{name}" no existe')


def remove_user(text: str, user: str) -> str:
    """Return ``text`` with ``user`` marked as deleted."""
    user = user.strip()
    if not user or invalid_token(user):
        raise UsersError("rmusr: -usr inválido (no vacío, sin espacios ni comas)")
    if user.lower() == "root":
        raise UsersError("rmusr: no se permite eliminar al usuario root")

    lines = split_lines(text)
    for index, parts in _records(lines):
        if len(parts) != 5 or parts[1].upper() != "U" or parts[3] != user:
            continue
        if atoi_safe(parts[0]) == 0:
            raise UsersError(f'rmusr: el usuario "{user}" ya está eliminado')
        lines[index] = f"0, U, {parts[2]}, {parts[3]}, {parts[4]}"
        return _join(lines)

    raise UsersError(f'rmusr: el usuario "{user}" no existe')


def change_group(text: str, user: str, group: str) -> str:
    """Return ``text`` with ``user`` moved into ``group``."""
    user, group = user.strip(), group.strip()
    if not user or not group:
        raise UsersError("chgrp: faltan -user o -grp")
    if "," in user or "," in group:
        raise UsersError("chgrp: user/grp no deben contener comas")
    if any(ch.isspace() for ch in user):
        raise UsersError("chgrp: user no debe contener espacios")
    if any(ch.isspace() for ch in group):
        raise UsersError("chgrp: grp no debe contener espacios")
    if user.lower() == "root":
        raise UsersError("chgrp: no se permite cambiar el grupo del usuario root")

    lines = split_lines(text)
    if not _group_exists(lines, group):
        raise UsersError(f'chgrp: el grupo "{group}" no existe o está eliminado')

    for index, parts in _records(lines):
        if len(parts) != 5 or parts[1].upper() != "U" or parts[3] != user:
            continue
        uid = atoi_safe(parts[0])
        if uid == 0:
            raise UsersError(f'chgrp: el usuario "{user}" ya está eliminado')
        if parts[2] == group:
            raise UsersError(f'chgrp: el usuario "{user}" ya pertenece al grupo "{group}"')
        lines[index] = f"{uid}, U, {group}, {parts[3]}, {parts[4]}"
        return _join(lines)

    raise UsersError(f'chgrp: el usuario "{user}" no existe')