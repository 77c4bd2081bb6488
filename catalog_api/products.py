from flask import Blueprint, g, jsonify, request
from sqlalchemy import delete

from .auth import token_required
from .errors import INTERNAL_ERROR, ErrorKind, Outcome, error_response
from .logs import logger
from .metrics import PRODUCT_COUNT
from .model import Product, User, db
from .validators import validate_product

products_bp = Blueprint('products', __name__)


# Every operation re-resolves the acting user so a token outliving its user
# gets a 404 rather than acting on orphaned rows.
def _acting_user(session, user_id) -> Outcome:
    user = session.get(User, user_id)
    if user is None:
        return Outcome.fail(ErrorKind.NOT_FOUND, "User not found")
    return Outcome.ok(user)


def create_product(session, payload, user_id) -> Outcome:
    checked = validate_product(payload)
    if checked.failed:
        return checked
    acting = _acting_user(session, user_id)
    if acting.failed:
        return acting

    data = checked.value
    product = Product(
        name=data.name,
        description=data.description,
        price=float(data.price),
        user_id=acting.value.id,
    )
    session.add(product)
    session.commit()
    return Outcome.ok(product)


def list_products(session, user_id) -> Outcome:
    acting = _acting_user(session, user_id)
    if acting.failed:
        return acting
    products = session.query(Product).filter_by(user_id=acting.value.id).order_by(Product.id).all()
    return Outcome.ok(products)


def update_product(session, product_id, payload, user_id) -> Outcome:
    checked = validate_product(payload)
    if checked.failed:
        return checked
    acting = _acting_user(session, user_id)
    if acting.failed:
        return acting

    product = session.get(Product, product_id)
    if product is None:
        return Outcome.fail(ErrorKind.NOT_FOUND, "Product not found")
    if product.user_id != acting.value.id:
        return Outcome.fail(ErrorKind.FORBIDDEN, "Forbidden")

    data = checked.value
    product.name = data.name
    product.description = data.description
    product.price = float(data.price)
    session.commit()
    return Outcome.ok(product)


def delete_product(session, product_id, user_id) -> Outcome:
    acting = _acting_user(session, user_id)
    if acting.failed:
        return acting

    # owner check and delete happen in one statement
    stmt = (
        delete(Product)
        .where(Product.id == product_id, Product.user_id == acting.value.id)
        .returning(Product.id, Product.name, Product.description, Product.price, Product.user_id)
    )
    row = session.execute(stmt).first()
    if row is None:
        session.rollback()
        return Outcome.fail(ErrorKind.NOT_FOUND, "Product not found")
    session.commit()
    return Outcome.ok(dict(row._mapping))


@products_bp.route("", methods=["POST"])
@token_required
def create():
    """Create a new product
    ---
    tags:
      - products
    security:
      - Bearer: []
    requestBody:
      description: The product to create.
      required: true
      content:
        application/json:
          schema:
            $ref: '#/components/schemas/ProductIn'
    responses:
      201:
        description: Product created successfully
      400:
        description: Invalid payload
      401:
        description: Missing or invalid token
      404:
        description: User not found
      500:
        description: Internal Server Error
    """
    try:
        logger.info("Create product request", extra={'endpoint': '/products', 'user_id': g.user_id})
        outcome = create_product(db.session, request.get_json(silent=True), g.user_id)
        if outcome.failed:
            logger.warning("Product creation failed - %s", outcome.error.message, extra={'endpoint': '/products', 'user_id': g.user_id, 'status_code': outcome.error.kind.status_code})
            return error_response(outcome.error)

        product = outcome.value
        PRODUCT_COUNT.labels('create').inc()
        logger.info("Product created successfully", extra={'endpoint': '/products', 'product_id': product.id, 'user_id': g.user_id, 'status_code': 201})
        return jsonify({"success": True, "product": product.to_dict()}), 201
    except Exception as e:
        db.session.rollback()
        logger.error("Error creating product", exc_info=True, extra={'endpoint': '/products', 'user_id': g.user_id, 'error': str(e)})
        return error_response(INTERNAL_ERROR)


@products_bp.route("", methods=["GET"])
@token_required
def list_all():
    """Get all products owned by the current user
    ---
    tags:
      - products
    security:
      - Bearer: []
    responses:
      200:
        description: List of products
      401:
        description: Missing or invalid token
      404:
        description: User not found
      500:
        description: Internal Server Error
    """
    try:
        outcome = list_products(db.session, g.user_id)
        if outcome.failed:
            logger.warning("Product listing failed - %s", outcome.error.message, extra={'endpoint': '/products', 'user_id': g.user_id, 'status_code': outcome.error.kind.status_code})
            return error_response(outcome.error)

        products = outcome.value
        logger.info(f"Retrieved {len(products)} products", extra={'endpoint': '/products', 'user_id': g.user_id, 'status_code': 200})
        return jsonify({"success": True, "products": [p.to_dict() for p in products]})
    except Exception as e:
        db.session.rollback()
        logger.error("Error retrieving products", exc_info=True, extra={'endpoint': '/products', 'user_id': g.user_id, 'error': str(e)})
        return error_response(INTERNAL_ERROR)


@products_bp.route("/<int:product_id>", methods=["PUT"])
@token_required
def update(product_id):
    """Update a product
    ---
    tags:
      - products
    security:
      - Bearer: []
    parameters:
      - in: path
        name: product_id
        required: true
        schema:
          type: integer
        description: ID of the product to update
    requestBody:
      description: The replacement product data.
      required: true
      content:
        application/json:
          schema:
            $ref: '#/components/schemas/ProductIn'
    responses:
      200:
        description: Product updated successfully
      400:
        description: Invalid payload
      401:
        description: Missing or invalid token
      403:
        description: Forbidden
      404:
        description: Product or user not found
      500:
        description: Internal Server Error
    """
    try:
        logger.info(f"Update product request for product_id: {product_id}", extra={'endpoint': '/products/<int:product_id>', 'product_id': product_id, 'user_id': g.user_id})
        outcome = update_product(db.session, product_id, request.get_json(silent=True), g.user_id)
        if outcome.failed:
            logger.warning("Product update failed - %s", outcome.error.message, extra={'endpoint': '/products/<int:product_id>', 'product_id': product_id, 'user_id': g.user_id, 'status_code': outcome.error.kind.status_code})
            return error_response(outcome.error)

        product = outcome.value
        PRODUCT_COUNT.labels('update').inc()
        logger.info("Product updated successfully", extra={'endpoint': '/products/<int:product_id>', 'product_id': product.id, 'user_id': g.user_id, 'status_code': 200})
        return jsonify({"success": True, "updatedProduct": product.to_dict()})
    except Exception as e:
        db.session.rollback()
        logger.error("Error updating product", exc_info=True, extra={'endpoint': '/products/<int:product_id>', 'product_id': product_id, 'error': str(e)})
        return error_response(INTERNAL_ERROR)


@products_bp.route("/<int:product_id>", methods=["DELETE"])
@token_required
def remove(product_id):
    """Delete a product
    ---
    tags:
      - products
    security:
      - Bearer: []
    parameters:
      - in: path
        name: product_id
        required: true
        schema:
          type: integer
        description: ID of the product to delete
    responses:
      200:
        description: Product deleted successfully
      401:
        description: Missing or invalid token
      404:
        description: Product or user not found
      500:
        description: Internal Server Error
    """
    try:
        logger.info(f"Delete product request for product_id: {product_id}", extra={'endpoint': '/products/<int:product_id>', 'product_id': product_id, 'user_id': g.user_id})
        outcome = delete_product(db.session, product_id, g.user_id)
        if outcome.failed:
            logger.warning("Product delete failed - %s", outcome.error.message, extra={'endpoint': '/products/<int:product_id>', 'product_id': product_id, 'user_id': g.user_id, 'status_code': outcome.error.kind.status_code})
            return error_response(outcome.error)

        PRODUCT_COUNT.labels('delete').inc()
        logger.info("Product deleted successfully", extra={'endpoint': '/products/<int:product_id>', 'product_id': product_id, 'user_id': g.user_id, 'status_code': 200})
        return jsonify({"success": True, "product": outcome.value})
    except Exception as e:
        db.session.rollback()
        logger.error("Error deleting product", exc_info=True, extra={'endpoint': '/products/<int:product_id>', 'product_id': product_id, 'error': str(e)})
        return error_response(INTERNAL_ERROR)
