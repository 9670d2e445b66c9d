import io

import pandas as pd
import pytest

from inventario.modules.logistics.utils import (
    EXPORT_COLUMNS,
    build_movement_description,
    movements_to_frame,
    read_excel,
    selections_from_frame,
)


def test_read_csv_and_build_selections():
    data = io.StringIO("Producto,Cantidad,Accion\nP1,3,add\nP2,2,retirar\n,,\n")

    selections = selections_from_frame(read_excel(data, "filas.csv"))

    assert [(s.product_id, s.quantity, s.action) for s in selections] == [
        ("P1", "3", "add"),
        ("P2", "2", "remove"),
        (None, "", "add"),
    ]


def test_selections_require_product_and_quantity_columns():
    with pytest.raises(ValueError):
        selections_from_frame(pd.DataFrame({"nombre": ["x"]}))


def test_movements_to_frame_one_row_per_line_item(movements):
    df = movements_to_frame(movements)

    assert list(df.columns) == EXPORT_COLUMNS
    assert len(df) == 5
    assert df.iloc[1]["producto"] == "Flour"
    assert df.iloc[1]["departamento"] == "DEPT1"


def test_build_movement_description(movements):
    assert build_movement_description(movements[0]) == "Ingreso de 10 unidades de Molinos SA: Flour"
    assert build_movement_description(movements[1], "Bakery") == "Salida de 6 unidades hacia Bakery: Flour, Sugar"


def test_export_includes_movement_description(movements):
    df = movements_to_frame(movements, departments={"DEPT1": "Bakery"})

    assert df.iloc[1]["descripcion"] == "Salida de 6 unidades hacia Bakery: Flour, Sugar"
