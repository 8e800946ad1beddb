"""Renderers that turn a configured Grid into its response dictionary."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Final

from .data.pagination import Pagination
from .data.sort import Sort
from .exceptions import InvalidArgumentError
from .helpers import deep_merge


if TYPE_CHECKING:
    from .grid import Grid


class _NotSupported:
    """Marker for a section name no renderer handles."""

    _instance: _NotSupported | None = None

    def __new__(cls) -> _NotSupported:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NOT_SUPPORTED"

    def __bool__(self) -> bool:
        return False


#: Returned by :meth:`GridViewRenderer.render_section` for unknown sections.
NOT_SUPPORTED: Final = _NotSupported()


class DataRenderer:
    """Dispatch named render actions to ``render_<action>`` methods."""

    def run(self, action: str, **params: Any) -> Any:
        """Run a render action.

        Parameters
        ----------
        action : str
            The action name, e.g. ``"main"`` calls :meth:`render_main`.
        **params : Any
            Keyword arguments for the action.

        Raises
        ------
        InvalidArgumentError
            If no ``render_<action>`` method exists.
        """
        method = getattr(self, f"render_{action}", None)
        if not callable(method):
            raise InvalidArgumentError(
                f"{type(self).__name__} has no render action {action!r}", argument="action"
            )
        return method(**params)


class GridViewRenderer(DataRenderer):
    """Render the metadata, pager, columns and items sections of a Grid."""

    def __init__(self) -> None:
        self.grid: Grid | None = None

    def render_main(self, **params: Any) -> dict[str, Any]:
        """Render every section of the grid's layout and merge the results.

        Parameters
        ----------
        **params : Any
            Must contain ``grid``, the Grid to render.

        Raises
        ------
        InvalidArgumentError
            If ``grid`` is missing or not a Grid.
        """
        from .grid import Grid  # pylint: disable=import-outside-toplevel

        grid = params.get("grid")
        if not isinstance(grid, Grid):
            raise InvalidArgumentError(
                f"{type(self).__name__}.render_main requires a 'grid' param of type {Grid.__name__}",
                argument="grid",
            )
        self.grid = grid

        content: dict[str, Any] = {}
        for section in grid.get_layout_sections():
            section_data = self.render_section(section)
            if section_data is not NOT_SUPPORTED:
                content = deep_merge(content, section_data)
        return content

    def render_section(self, name: str) -> dict[str, Any] | _NotSupported:
        """Render one section by name.

        Returns
        -------
        dict or NOT_SUPPORTED
            The section output, or NOT_SUPPORTED for unknown names.
        """
        if name == "metadata":
            return self.render_metadata()
        if name == "pager":
            return self.render_pager()
        if name == "columns":
            return self.render_column_group()
        if name == "items":
            return self.render_items()
        return NOT_SUPPORTED

    @property
    def _grid(self) -> Grid:
        if self.grid is None:
            raise InvalidArgumentError("No grid is being rendered", argument="grid")
        return self.grid

    def render_metadata(self) -> dict[str, Any]:
        """Render the grid identity, display flags and request parameter names."""
        grid = self._grid
        value: dict[str, Any] = {
            "id": grid.get_id(),
            "caption": grid.caption,
            "description": grid.description,
            "options": grid.options,
            "header": {"show": grid.show_header},
            "filters": {"show": grid.show_filters},
            "footer": {"show": grid.show_footer},
            "request_params": {},
        }

        pagination = grid.data_provider.get_pagination()
        if isinstance(pagination, Pagination):
            value["request_params"]["pager"] = {
                "param": pagination.page_param,
                "size": pagination.page_size_param,
            }

        sort = grid.data_provider.get_sort()
        if isinstance(sort, Sort):
            value["request_params"]["sorter"] = {
                "param": sort.sort_param,
                "separator": sort.separator,
                "multi_sort": sort.enable_multi_sort,
            }

        return {"metadata": value}

    def render_pager(self) -> dict[str, Any]:
        """Render result and page counts."""
        provider = self._grid.data_provider
        pagination = provider.get_pagination()
        total_results = provider.get_total_count()
        results_per_page = provider.get_count()
        total_pages = 1
        current_page = 1

        if pagination is not None:
            total_pages = pagination.page_count
            current_page = pagination.page + 1

        return {
            "pager": {
                "results": {
                    "total": int(total_results),
                    "per_page": int(results_per_page),
                },
                "pages": {
                    "total": int(total_pages),
                    "current": int(current_page),
                },
            }
        }

    def render_column_group(self) -> dict[str, Any]:
        """Render one descriptor per column."""
        columns = [
            {
                "label": column.render_label(),
                "attribute": column.attribute,
                "description": column.render_description(),
                "sortable": column.enable_sorting,
                "filterable": column.enable_filtering,
                "header": column.render_header_cell(),
                "filter": column.render_filter_cell(),
                "row": {"options": column.row_options},
                "footer": column.render_footer_cell(),
            }
            for column in self._grid.columns
        ]
        return {"columns": columns}

    def render_items(self) -> dict[str, Any]:
        """Render the cells of every row on the current page.

        Cells of columns sharing an attribute overwrite each other; the
        last column wins.
        """
        grid = self._grid
        models = list(grid.data_provider.get_models())
        keys = grid.data_provider.get_keys()
        rows: list[dict[str, Any]] = []

        for index, model in enumerate(models):
            key = keys[index] if index < len(keys) else index
            cells: dict[str, Any] = {}

            for column in grid.columns:
                cells.update(column.render_data_cell(model, key, index))
                if callable(grid.row_data_cell_render):
                    cells = grid.row_data_cell_render(grid, cells)

            rows.append(cells)

        return {"items": rows}
