#
# Copyright (c) 2022 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Type hints used internally by this package"""

from typing import Dict, List, Union

JsonableAtom = Union[str, int, float, bool, None]
"""A simple JSON value that has no children"""

JsonableDict = Dict[str, 'Jsonable']
"""A JSON object whose values are themselves JSON-serializable"""

JsonableList = List['Jsonable']
"""A JSON array whose elements are themselves JSON-serializable"""

Jsonable = Union[JsonableAtom, JsonableDict, JsonableList]
"""Any value that can be serialized with json.dumps()"""
