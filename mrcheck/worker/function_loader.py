"""
Dynamic Function Loader for the job under test
Loads a user-provided Python file containing map, reduce, and combiner functions
"""

import hashlib
import importlib.util
import logging
import os
import sys

logger = logging.getLogger(__name__)

# Accepted function names, preferred name first
MAP_NAMES = ('map_function', 'map_fn')
REDUCE_NAMES = ('reduce_function', 'reduce_fn')
COMBINER_NAMES = ('combiner_function', 'combine_fn')


class FunctionLoader:
    """Dynamically loads user-provided map/reduce functions from Python files"""

    def __init__(self, map_reduce_file: str):
        """
        Initialize the function loader

        Args:
            map_reduce_file: Path to user's Python file containing map/reduce functions
        """
        self.map_reduce_file = map_reduce_file
        self.module = None

    def load_module(self):
        """
        Load the user-provided module, once

        Returns:
            The loaded module object

        Raises:
            FileNotFoundError: If the map/reduce file doesn't exist
            ImportError: If the file cannot be imported as a module
        """
        if self.module is not None:
            return self.module

        if not os.path.exists(self.map_reduce_file):
            raise FileNotFoundError(f"Map/Reduce file not found: {self.map_reduce_file}")

        module_name = self.module_name()
        spec = importlib.util.spec_from_file_location(module_name, self.map_reduce_file)
        if spec is None or spec.loader is None:
            raise ImportError(f"Failed to load job file: {self.map_reduce_file}")
        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
        except Exception as e:
            sys.modules.pop(module_name, None)
            raise ImportError(f"Failed to load job file {self.map_reduce_file}: {e}") from e

        logger.info(f"Loaded job file {self.map_reduce_file}")
        self.module = module
        return module

    def module_name(self) -> str:
        """sys.modules name, unique per job file path"""
        stem = os.path.splitext(os.path.basename(self.map_reduce_file))[0]
        path_hash = hashlib.sha1(os.path.abspath(self.map_reduce_file).encode('utf-8')).hexdigest()[:10]
        return f"mrcheck_job_{stem}_{path_hash}"

    def _lookup(self, names):
        module = self.load_module()
        for name in names:
            if hasattr(module, name):
                return getattr(module, name)
        return None

    def get_map_function(self):
        """
        Get map function from loaded module

        Raises:
            AttributeError: If module defines neither 'map_function' nor 'map_fn'
        """
        func = self._lookup(MAP_NAMES)
        if func is None:
            raise AttributeError("Module must define 'map_function'")
        return func

    def get_reduce_function(self):
        """
        Get reduce function from loaded module

        Raises:
            AttributeError: If module defines neither 'reduce_function' nor 'reduce_fn'
        """
        func = self._lookup(REDUCE_NAMES)
        if func is None:
            raise AttributeError("Module must define 'reduce_function'")
        return func

    def get_combiner_function(self):
        """
        Get combiner function from loaded module

        Returns:
            The combiner callable, or the reduce function as default, or None
        """
        func = self._lookup(COMBINER_NAMES)
        if func is not None:
            return func
        # Default combiner is reduce function
        return self._lookup(REDUCE_NAMES)
