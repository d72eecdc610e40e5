"""
tests/conftest.py
Shared fixtures for the prismagen test suite.

No external mocking libraries are used; real file I/O is performed
inside temporary project trees managed by pytest's tmp_path fixture.

Project tree built by ``project_root``::

    prisma/schema/models/customer.prisma        Customer (soft-deletable)
    prisma/schema/models/order.prisma           Order -> Customer
    prisma/schema/models/order-item.prisma      OrderItem -> Order
    prisma/schema/models/info/category-info.prisma   self-referencing tree
    prisma/schema/models/info/region-info.prisma     no relations
    src/config.ts                                APP_DATA_PROCESSING_EXPOSE
    src/info/                                    info module directory
    src/shop/order/                              existing nested resource dir
"""

from __future__ import annotations

import pathlib
import textwrap
from typing import Dict, List

import pytest

from prismagen.generator import PrismaGenerator, load_config
from prismagen.models import FieldRecord, GeneratorConfig, ModelRegistry, ParsedSchema
from prismagen.parser import SchemaParser, SchemaSource, build_registry
from prismagen.templates import TemplateGenerator
from prismagen.type_map import map_type


# ---------------------------------------------------------------------------
# Definition units
# ---------------------------------------------------------------------------

CUSTOMER_PRISMA: str = textwrap.dedent(
    """\
    // 고객
    model Customer {
      id        Int       @id @default(autoincrement()) // 아이디
      name      String    // 고객 이름#CR#U
      email     String?   // 이메일#CO#U#MCR#MU
      password  String    // 비밀번호#CR#FU#FL
      orders    Order[]   // 주문 목록
      deletedAt DateTime? // 삭제 일시
    }
    """
)

ORDER_PRISMA: str = textwrap.dedent(
    """\
    // 주문
    model Order {
      id         Int         @id @default(autoincrement()) // 아이디
      customerId Int         // 고객 아이디#CR
      customer   Customer    @relation(fields: [customerId], references: [id]) // 고객
      total      Decimal     // 합계#CR#U
      status     OrderStatus @default(PENDING) // 상태#CO#U#MFL
      tags       String[]    // 태그#CO
      memo       String?     // 메모#CO#U#XY
      createdAt  DateTime    @default(now()) // 생성 일시

      @@index([customerId])
    }
    """
)

ORDER_ITEM_PRISMA: str = textwrap.dedent(
    """\
    // 주문 항목
    model OrderItem {
      id       Int   @id @default(autoincrement()) // 아이디
      orderId  Int   // 주문 아이디#CR
      order    Order @relation(fields: [orderId], references: [id]) // 주문
      quantity Int   // 수량#CR#U
    }
    """
)

CATEGORY_INFO_PRISMA: str = textwrap.dedent(
    """\
    // 카테고리
    model CategoryInfo {
      id       Int            @id // 아이디
      name     String         // 이름
      parentId Int?           // 상위 카테고리 아이디
      parent   CategoryInfo?  @relation("CategoryTree", fields: [parentId], references: [id]) // 상위 카테고리
      children CategoryInfo[] @relation("CategoryTree") // 하위 카테고리
    }
    """
)

REGION_INFO_PRISMA: str = textwrap.dedent(
    """\
    // 지역
    model RegionInfo {
      id   Int    @id // 아이디
      name String // 지역명
    }
    """
)

APP_CONFIG_TS: str = textwrap.dedent(
    """\
    export class AppConfig {
        static readonly PORT = 3000;
        static readonly APP_DATA_PROCESSING_EXPOSE = [
            "password",
            'deletedAt',
        ] as const;
    }
    """
)

ALL_MODELS: List[str] = ["Customer", "Order", "OrderItem", "CategoryInfo", "RegionInfo"]
AGGREGATE_MODELS: List[str] = ["CategoryInfo", "RegionInfo"]


# ---------------------------------------------------------------------------
# Project tree
# ---------------------------------------------------------------------------


def write_tree(root: pathlib.Path, files: Dict[str, str]) -> None:
    for rel_path, content in files.items():
        path = root / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")


@pytest.fixture()
def project_root(tmp_path: pathlib.Path) -> pathlib.Path:
    """A NestJS + Prisma project skeleton with five annotated models."""
    root = tmp_path / "project"
    write_tree(
        root,
        {
            "prisma/schema/models/customer.prisma": CUSTOMER_PRISMA,
            "prisma/schema/models/order.prisma": ORDER_PRISMA,
            "prisma/schema/models/order-item.prisma": ORDER_ITEM_PRISMA,
            "prisma/schema/models/info/category-info.prisma": CATEGORY_INFO_PRISMA,
            "prisma/schema/models/info/region-info.prisma": REGION_INFO_PRISMA,
            "src/config.ts": APP_CONFIG_TS,
        },
    )
    (root / "src" / "info").mkdir(parents=True)
    (root / "src" / "shop" / "order").mkdir(parents=True)
    return root


@pytest.fixture()
def config(project_root: pathlib.Path) -> GeneratorConfig:
    return load_config(project_root)


@pytest.fixture()
def source(config: GeneratorConfig) -> SchemaSource:
    return SchemaSource.from_config(config)


@pytest.fixture()
def registry(source: SchemaSource) -> ModelRegistry:
    return build_registry(source)


@pytest.fixture()
def parser(source: SchemaSource, registry: ModelRegistry) -> SchemaParser:
    return SchemaParser(source, registry)


@pytest.fixture()
def customer(parser: SchemaParser) -> ParsedSchema:
    return parser.export("customer")


@pytest.fixture()
def order(parser: SchemaParser) -> ParsedSchema:
    return parser.export("order")


@pytest.fixture()
def order_item(parser: SchemaParser) -> ParsedSchema:
    return parser.export("order-item")


@pytest.fixture()
def aggregates(parser: SchemaParser) -> List[ParsedSchema]:
    return parser.export_aggregates()


@pytest.fixture()
def templates(config: GeneratorConfig) -> TemplateGenerator:
    return TemplateGenerator(config, expose_fields=["password"])


@pytest.fixture()
def generator(config: GeneratorConfig) -> PrismaGenerator:
    return PrismaGenerator(config)


# ---------------------------------------------------------------------------
# Hand-built schemas
# ---------------------------------------------------------------------------


def make_field(name: str, declared: str = "String", **kwargs: object) -> FieldRecord:
    is_array = bool(kwargs.pop("is_array", False))
    return FieldRecord(name=name, type=map_type(declared, is_array), is_array=is_array, **kwargs)


@pytest.fixture()
def schema_without_id() -> ParsedSchema:
    return ParsedSchema(
        name="Tag",
        description="태그",
        fields=(make_field("label", description="라벨"),),
        file_id="tag",
    )


@pytest.fixture()
def schema_with_composite_id() -> ParsedSchema:
    return ParsedSchema(
        name="Membership",
        description="멤버십",
        fields=(
            make_field("userId", "Int", is_id=True, description="유저 아이디"),
            make_field("groupId", "Int", is_id=True, description="그룹 아이디"),
        ),
        file_id="membership",
    )
