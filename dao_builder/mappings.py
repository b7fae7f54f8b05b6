"""Dialect constants for statement generation."""

# Identifier quote characters per dialect
quote_chars = {
    'mysql': '`',
    'mariadb': '`',
    'mssql': '"',
    'oracle': '"',
    'postgresql': '"',
    'sqlite': '"',
    'default': '"'
}

# Expressions producing a fresh UUID string, aliased as uuid
uuid_functions = {
    'mysql': 'UUID()',
    'mariadb': 'UUID()',
    'postgresql': 'CAST(gen_random_uuid() AS VARCHAR(36))',
    'mssql': 'CAST(NEWID() AS VARCHAR(36))',
    'oracle': 'RAWTOHEX(SYS_GUID())',
    'sqlite': "lower(hex(randomblob(4)) || '-' || hex(randomblob(2)) || '-4' || substr(hex(randomblob(2)), 2) || '-' || "
              "substr('89ab', 1 + (abs(random()) % 4), 1) || substr(hex(randomblob(2)), 2) || '-' || hex(randomblob(6)))"
}

# Oracle needs a FROM clause on scalar selects
uuid_from = {
    'oracle': ' FROM dual'
}

sort_directions = ('ASC', 'DESC')

like_joins = ('AND', 'OR')

# Parameter-set discriminators
where_prefix = 'w'
value_prefix = 'v'
like_prefix = 'l'
range_prefix = 'r'
