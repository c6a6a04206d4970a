##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other GDA
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to GDA.
##############################################################################

"""
Base factory class for pluggable components in GDA.

This module defines an abstract `GdaBaseFactory` class that keeps a registry of
named component classes with optional aliases, discovers additional components
through Python entry points, and instantiates components by name. It is used to
select the SQL dialect of a connection from configuration.

Subclasses must define how to register built-in components, validate component
classes, and identify the entry point group used for plugin discovery.
"""

import logging
from abc import ABC, abstractmethod
from importlib.metadata import entry_points
from typing import Any, Dict, List, Type


LOG = logging.getLogger(__name__)


class GdaBaseFactory(ABC):
    """
    Abstract base factory for managing and instantiating pluggable components.

    Subclasses are required to:
        - Implement `_register_builtins()` to register default implementations
        - Implement `_validate_component()` to enforce interface/type constraints
        - Define `_entry_point_group()` to identify the entry point namespace for discovery

    Attributes:
        _registry (Dict[str, Any]): Maps canonical component names to their classes.
        _aliases (Dict[str, str]): Maps alias names to canonical component names.

    Methods:
        register: Register a new component and its optional aliases.
        list_available: Return a list of all registered component names.
        get_component_class: Return the registered class for a name or alias.
        create: Instantiate a registered component by name or alias.
    """

    def __init__(self):
        """
        Initialize the registry and alias tables and register built-in components.
        """
        self._registry: Dict[str, Any] = {}
        self._aliases: Dict[str, str] = {}
        self._plugins_discovered = False
        self._register_builtins()

    @abstractmethod
    def _register_builtins(self):
        """
        Register built-in components.

        Subclasses must implement this to register relevant components.
        """
        raise NotImplementedError("Subclasses of `GdaBaseFactory` must implement a `_register_builtins` method.")

    @abstractmethod
    def _validate_component(self, component_class: Any):
        """
        Validate the component class before registration.

        Args:
            component_class: The class to validate.

        Raises:
            TypeError: If `component_class` is not valid.
        """
        raise NotImplementedError("Subclasses of `GdaBaseFactory` must implement a `_validate_component` method.")

    @abstractmethod
    def _entry_point_group(self) -> str:
        """
        Return the entry point group used for plugin discovery.

        Returns:
            The entry point group used for plugin discovery.
        """
        raise NotImplementedError("Subclasses of `GdaBaseFactory` must define an entry point group.")

    def _discover_plugins(self):
        """
        Discover and register plugins via Python entry points. Discovery runs once
        per factory; a plugin that fails to load is logged and skipped.
        """
        if self._plugins_discovered:
            return
        self._plugins_discovered = True

        for entry_point in entry_points(group=self._entry_point_group()):
            try:
                plugin_class = entry_point.load()
                self.register(entry_point.name, plugin_class)
                LOG.info(f"Loaded plugin via entry point: {entry_point.name}")
            except Exception as e:  # pylint: disable=broad-exception-caught
                LOG.warning(f"Failed to load plugin '{entry_point.name}': {e}")

    def _raise_component_error_class(self, msg: str) -> Type[Exception]:
        """
        Raise an appropriate exception when an invalid component is requested.

        Subclasses should override this to raise more specific exceptions.

        Args:
            msg: The message to add to the error being raised.

        Raises:
            A subclass of Exception (e.g., ValueError by default).
        """
        raise ValueError(msg)

    def register(self, name: str, component_class: Any, aliases: List[str] = None):
        """
        Register a new component implementation.

        Args:
            name: Canonical name for the component.
            component_class: The class to register.
            aliases: Optional alternative names for this component.

        Raises:
            TypeError: If the component_class fails validation.
        """
        self._validate_component(component_class)

        self._registry[name] = component_class
        LOG.debug(f"Registered component: {name}")

        for alias in aliases or []:
            self._aliases[alias] = name
            LOG.debug(f"Registered alias '{alias}' for component '{name}'")

    def list_available(self) -> List[str]:
        """
        Return the canonical names of all built-in and discovered components.

        Returns:
            A list of canonical names for all available components.
        """
        self._discover_plugins()
        return list(self._registry.keys())

    def get_component_class(self, component_type: str) -> Any:
        """
        Retrieve a registered component class by its name or one of its aliases.

        Args:
            component_type: The name or alias of the component.

        Returns:
            The class object corresponding to the requested component.
        """
        canonical_name = self._aliases.get(component_type.lower(), component_type.lower())
        if canonical_name not in self._registry:
            self._discover_plugins()

        component_class = self._registry.get(canonical_name)
        if component_class is None:
            available = ", ".join(self.list_available())
            self._raise_component_error_class(
                f"Component '{component_type}' is not supported. Available components: {available}"
            )
        return component_class

    def create(self, component_type: str, config: Dict = None) -> Any:
        """
        Instantiate and return a component of the specified type.

        Args:
            component_type: The name or alias of the component to create.
            config: Optional keyword arguments for initializing the component.

        Returns:
            An instance of the requested component.
        """
        component_class = self.get_component_class(component_type)
        instance = component_class() if config is None else component_class(**config)
        LOG.debug(f"Created component '{component_class.__name__}'")
        return instance
