"""CSV renderer: one section per entity type, every field quoted."""

import csv
import io
import json

from models import OutputFormat, WorkspaceDocumentation
from .base import NO_CONTENT_MESSAGE, BaseFormatter
from .property_formatter import describe_property


class CsvFormatter(BaseFormatter):
    """Renders pages, databases, data sources and properties as CSV sections."""

    format_id = OutputFormat.CSV
    file_extension = 'csv'

    def render(self, documentation: WorkspaceDocumentation) -> str:
        buffer = io.StringIO()
        writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator='\n')

        buffer.write('# PAGES\n')
        writer.writerow(['Type', 'ID', 'Title', 'URL', 'Created', 'LastEdited', 'ParentType', 'ParentID'])
        item_rows = [('item', page) for page in documentation.get_all_item_pages()]
        for row_type, page in [('page', page) for page in documentation.pages] + item_rows:
            writer.writerow([
                row_type, page.id, page.title, page.url, page.created_time,
                page.last_edited_time, page.parent.type, page.parent.id or '',
            ])

        buffer.write('\n# DATABASES\n')
        writer.writerow([
            'Type', 'ID', 'Title', 'URL', 'Description', 'Created', 'LastEdited',
            'ParentType', 'ParentID', 'DataSources',
        ])
        for database in documentation.databases:
            writer.writerow([
                'database', database.id, database.title, database.url, database.description or '',
                database.created_time, database.last_edited_time, database.parent.type,
                database.parent.id or '', len(database.data_sources),
            ])

        if not documentation.include_schema:
            buffer.write('\n# Schema not included\n')
        else:
            buffer.write('\n# DATA_SOURCES\n')
            writer.writerow([
                'DatabaseID', 'DataSourceID', 'Name', 'Title', 'Description',
                'Created', 'LastEdited', 'Properties', 'Items',
            ])
            for database in documentation.databases:
                for data_source in database.data_sources:
                    writer.writerow([
                        database.id, data_source.id, data_source.name, data_source.title,
                        data_source.description or '', data_source.created_time,
                        data_source.last_edited_time, len(data_source.properties),
                        '' if data_source.pages is None else len(data_source.pages),
                    ])

            buffer.write('\n# DATABASE_PROPERTIES\n')
            writer.writerow([
                'OwnerType', 'OwnerID', 'OwnerTitle', 'PropertyID', 'PropertyName',
                'PropertyType', 'Description', 'Summary', 'Options',
            ])
            for database in documentation.databases:
                owners = [('database', database.id, database.title, database.properties)]
                owners.extend(
                    ('data_source', ds.id, ds.display_title, ds.properties)
                    for ds in database.data_sources
                )
                for owner_type, owner_id, owner_title, properties in owners:
                    for prop in properties:
                        fields = describe_property(prop, documentation.databases)
                        writer.writerow([
                            owner_type, owner_id, owner_title, prop.id, prop.name, prop.type,
                            fields.description or '', fields.detail or '',
                            '' if prop.options is None else json.dumps(
                                prop.options, ensure_ascii=False, sort_keys=True, default=str
                            ),
                        ])

        if documentation.is_empty:
            buffer.write(f'\n{NO_CONTENT_MESSAGE}\n')

        return buffer.getvalue()
