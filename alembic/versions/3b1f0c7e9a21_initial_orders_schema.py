"""initial orders schema: users, products, orders, items, messages, reads, feedbacks, replacements

Revision ID: 3b1f0c7e9a21
Revises:
Create Date: 2026-10-19 10:12:44.301118

"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3b1f0c7e9a21"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Upgrade schema."""
    user_role = sa.Enum("ADMIN", "CLIENT", "PROVIDER", "GRUZCHIK", "EXPORT_MANAGER", name="user_role")
    feedback_type = sa.Enum("WRONG_SIZE", "WRONG_ITEM", "AGREE_REPLACEMENT", name="feedback_type")
    replacement_status = sa.Enum("PENDING", "ACCEPTED", "REJECTED", name="replacement_status")

    op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("name", sa.String(128), nullable=True),
        sa.Column("phone", sa.String(32), nullable=False),
        sa.Column("role", user_role, nullable=False),
        sa.Column("label", sa.String(128), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index(op.f("ix_users_id"), "users", ["id"])
    op.create_index(op.f("ix_users_phone"), "users", ["phone"], unique=True)

    op.create_table(
        "products",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(255), nullable=False),
        sa.Column("article", sa.String(64), nullable=True),
        sa.Column("price_pair", sa.Numeric(12, 2), nullable=False),
        sa.Column("sizes", sa.JSON, nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False),
        sa.Column("active_updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index(op.f("ix_products_id"), "products", ["id"])
    op.create_index(op.f("ix_products_slug"), "products", ["slug"], unique=True)

    op.create_table(
        "orders",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("order_number", sa.String(32), nullable=False),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("gruzchik_id", sa.Integer, sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("status", sa.String(32), nullable=False),
        sa.Column("label", sa.String(255), nullable=True),
        sa.Column("payment", sa.Numeric(12, 2), nullable=False),
        sa.Column("subtotal", sa.Numeric(12, 2), nullable=False),
        sa.Column("total", sa.Numeric(12, 2), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(32), nullable=True),
        sa.Column("address", sa.Text, nullable=True),
        sa.Column("comment", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index(op.f("ix_orders_id"), "orders", ["id"])
    op.create_index(op.f("ix_orders_order_number"), "orders", ["order_number"], unique=True)
    op.create_index(op.f("ix_orders_user_id"), "orders", ["user_id"])
    op.create_index(op.f("ix_orders_gruzchik_id"), "orders", ["gruzchik_id"])

    op.create_table(
        "order_items",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("order_id", sa.Integer, sa.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False),
        sa.Column("product_id", sa.Integer, sa.ForeignKey("products.id"), nullable=False),
        sa.Column("slug", sa.String(255), nullable=True),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("article", sa.String(64), nullable=True),
        sa.Column("color", sa.String(64), nullable=True),
        sa.Column("qty", sa.Integer, nullable=False),
        sa.Column("price_box", sa.Numeric(12, 2), nullable=False),
        sa.Column("item_code", sa.String(64), nullable=True),
        sa.Column("is_available", sa.Boolean, nullable=True),
        sa.Column("is_purchased", sa.Boolean, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index(op.f("ix_order_items_id"), "order_items", ["id"])
    op.create_index(op.f("ix_order_items_order_id"), "order_items", ["order_id"])
    op.create_index(op.f("ix_order_items_product_id"), "order_items", ["product_id"])
    op.create_index(op.f("ix_order_items_item_code"), "order_items", ["item_code"])

    op.create_table(
        "order_item_messages",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column(
            "order_item_id", sa.Integer, sa.ForeignKey("order_items.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("text", sa.Text, nullable=True),
        sa.Column("attachments", sa.JSON, nullable=True),
        sa.Column("is_service", sa.Boolean, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index(op.f("ix_order_item_messages_id"), "order_item_messages", ["id"])
    op.create_index(op.f("ix_order_item_messages_order_item_id"), "order_item_messages", ["order_item_id"])
    op.create_index(op.f("ix_order_item_messages_user_id"), "order_item_messages", ["user_id"])

    op.create_table(
        "order_item_message_reads",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column(
            "message_id", sa.Integer, sa.ForeignKey("order_item_messages.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("message_id", "user_id", name="uq_order_item_message_reads_message_user"),
    )
    op.create_index(op.f("ix_order_item_message_reads_id"), "order_item_message_reads", ["id"])
    op.create_index(op.f("ix_order_item_message_reads_user_id"), "order_item_message_reads", ["user_id"])

    op.create_table(
        "order_item_feedbacks",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column(
            "order_item_id", sa.Integer, sa.ForeignKey("order_items.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("feedback_type", feedback_type, nullable=False),
        sa.Column("refusal_reason", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint(
            "order_item_id", "user_id", "feedback_type", name="uq_order_item_feedbacks_item_user_type"
        ),
    )
    op.create_index(op.f("ix_order_item_feedbacks_id"), "order_item_feedbacks", ["id"])
    op.create_index(op.f("ix_order_item_feedbacks_order_item_id"), "order_item_feedbacks", ["order_item_id"])

    op.create_table(
        "order_item_replacements",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column(
            "order_item_id", sa.Integer, sa.ForeignKey("order_items.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("admin_user_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("client_user_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("status", replacement_status, nullable=False),
        sa.Column("replacement_image_url", sa.String(1024), nullable=True),
        sa.Column("replacement_image_key", sa.String(512), nullable=True),
        sa.Column("admin_comment", sa.Text, nullable=True),
        sa.Column("client_comment", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index(op.f("ix_order_item_replacements_id"), "order_item_replacements", ["id"])
    op.create_index(
        op.f("ix_order_item_replacements_order_item_id"), "order_item_replacements", ["order_item_id"]
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table("order_item_replacements")
    op.drop_table("order_item_feedbacks")
    op.drop_table("order_item_message_reads")
    op.drop_table("order_item_messages")
    op.drop_table("order_items")
    op.drop_table("orders")
    op.drop_table("products")
    op.drop_table("users")
    bind = op.get_bind()
    sa.Enum(name="replacement_status").drop(bind, checkfirst=True)
    sa.Enum(name="feedback_type").drop(bind, checkfirst=True)
    sa.Enum(name="user_role").drop(bind, checkfirst=True)
