from pydantic import constr

# no int/bool -> str coercion, empty string rejected
NonEmptyStr = constr(strict=True, min_length=1)
